import pytest
from datetime import datetime
from pathlib import Path
from photo_library.commands import group_photos
from photo_library.exceptions import InvalidArgument, NotFound
from photo_library.models import PhotoRecord

def test_get_all_photos_newest_first(app, make_image):
    app.upload_photos([
        make_image("old.jpg", mtime=1_000_000_000),
        make_image("new.jpg", mtime=1_700_000_000),
        make_image("mid.jpg", mtime=1_300_000_000),
    ])

    assert [p.name for p in app.get_all_photos()] == ["new.jpg", "mid.jpg", "old.jpg"]

def test_delete_removes_rows_files_and_membership(app, make_image):
    result = app.upload_photos([make_image("a.jpg"), make_image("b.jpg")])
    a, b = (r.path for r in result.records)
    album = app.create_album("Trip")
    app.add_to_album(album.id, [a, b])

    app.delete_photos([a])

    assert not Path(a).exists()
    assert Path(b).exists()
    assert [p.path for p in app.get_all_photos()] == [b]
    assert [p.path for p in app.get_album_photos(album.id)] == [b]

def test_delete_with_missing_file_still_removes_record(app, make_image):
    path = app.upload_photos([make_image("a.jpg")]).records[0].path
    Path(path).unlink()

    app.delete_photos([path])

    assert app.get_all_photos() == []

def test_delete_never_touches_scanned_originals(app, make_image, tmp_path):
    original = make_image("keep.jpg")
    app.scan_directory(tmp_path / "src", save_to_db=True)

    app.delete_photos([str(original.resolve())])

    assert original.exists()
    assert app.get_all_photos() == []

def test_delete_leaves_untracked_library_files(app, make_image):
    path = Path(app.upload_photos([make_image("a.jpg", mtime=1_600_000_000)]).records[0].path)
    stray = path.with_name("stray.jpg")
    stray.write_bytes(b"not catalogued")

    assert app.delete_photos([str(path), str(stray)]) == 1

    assert not path.exists()
    assert stray.exists()

def test_toggle_favorite(app, make_image):
    path = app.upload_photos([make_image("a.jpg")]).records[0].path

    app.toggle_favorite(path, True)
    assert [p.path for p in app.get_favorites()] == [path]

    app.toggle_favorite(path, False)
    assert app.get_favorites() == []

def test_toggle_favorite_unknown_path(app, make_image):
    app.upload_photos([make_image("a.jpg")])
    with pytest.raises(NotFound):
        app.toggle_favorite("/nowhere/ghost.jpg", True)
    assert [p.is_favorite for p in app.get_all_photos()] == [False]

def test_albums_listing(app, make_image):
    records = app.upload_photos([
        make_image("a.jpg", mtime=1_000_000_000),
        make_image("b.jpg", mtime=1_200_000_000),
    ]).records
    album = app.create_album("Best")
    app.add_to_album(album.id, [r.path for r in records])
    app.add_to_album(album.id, [records[0].path])

    listed = app.get_albums()
    assert len(listed) == 1
    assert listed[0].count == 2
    assert listed[0].cover_photo_path == records[1].path

def test_photos_by_month_and_year_counts(app, make_image):
    app.upload_photos([
        make_image("2018-05-01.jpg"),
        make_image("2018-05-20.jpg"),
        make_image("2019-01-01.jpg"),
    ])

    assert [p.name for p in app.get_photos_by_month(2018, 5)] == ["2018-05-20.jpg", "2018-05-01.jpg"]
    assert app.get_photo_counts_by_year() == [("2019", 1), ("2018", 2)]

def test_group_photos_by_month_and_year():
    def at(name, *parts):
        return PhotoRecord(path=f"/lib/{name}", name=name, date_taken=int(datetime(*parts).timestamp()))
    records = [at("a.jpg", 2020, 1, 5), at("b.jpg", 2021, 6, 1), at("c.jpg", 2020, 1, 20), at("d.jpg", 2020, 3, 1)]

    by_month = group_photos(records, "month")
    assert list(by_month) == ["2021-06", "2020-03", "2020-01"]
    assert [r.name for r in by_month["2020-01"]] == ["c.jpg", "a.jpg"]

    by_year = group_photos(records, "year")
    assert {k: len(v) for k, v in by_year.items()} == {"2021": 1, "2020": 3}

    assert list(group_photos(records, "all")) == ["all"]
    with pytest.raises(InvalidArgument):
        group_photos(records, "week")

def test_media_type_is_derived_from_path():
    assert PhotoRecord(path="/lib/a.MOV", name="a.MOV", date_taken=0).media_type == 'video'
    assert PhotoRecord(path="/lib/a.heic", name="a.heic", date_taken=0).media_type == 'photo'
