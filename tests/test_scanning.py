import pytest
from pathlib import Path
from photo_library.scanning.filesystem import DiskScanner, classify
from photo_library import config

@pytest.mark.parametrize("ext", ["jpg", "jpeg", "png", "heic", "webp", "gif", "bmp", "tiff"])
def test_classify_photo_extensions(ext):
    assert classify(f"/x/a.{ext}") == 'photo'
    assert classify(f"/x/A.{ext.upper()}") == 'photo'

@pytest.mark.parametrize("ext", ["mp4", "mov", "avi", "webm", "mkv"])
def test_classify_video_extensions(ext):
    assert classify(Path(f"clip.{ext}")) == 'video'
    assert classify(Path(f"CLIP.{ext.upper()}")) == 'video'

@pytest.mark.parametrize("name", ["notes.txt", "README", "photo.jpg.bak", "raw.cr2", ".jpg", ""])
def test_classify_unsupported(name):
    assert classify(name) == 'unsupported'

def test_ext_map_covers_both_kinds():
    assert set(config.EXT_TO_TYPE.values()) == {'photo', 'video'}

def test_discover_walks_recursively_and_filters(tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "top.JPG").write_bytes(b"x")
    (tmp_path / "a" / "clip.mov").write_bytes(b"x")
    (tmp_path / "a" / "b" / "deep.png").write_bytes(b"x")
    (tmp_path / "a" / "notes.txt").write_text("skip")
    (tmp_path / "a" / "._top.jpg").write_bytes(b"x")

    found = DiskScanner().discover(tmp_path)
    by_name = {p.name: kind for p, kind in found}

    assert by_name == {"top.JPG": "photo", "clip.mov": "video", "deep.png": "photo"}

def test_discover_honours_skip_dirs(tmp_path):
    skip = tmp_path / "skip"
    skip.mkdir()
    (skip / "hidden.jpg").write_bytes(b"x")
    (tmp_path / "keep.jpg").write_bytes(b"x")

    found = DiskScanner().discover(tmp_path, skip_dirs={skip})
    assert [p.name for p, _ in found] == ["keep.jpg"]
