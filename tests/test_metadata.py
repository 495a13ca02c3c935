import time
import pytest
from datetime import datetime, timezone
from photo_library.exceptions import ExtractionDegraded
from photo_library.metadata.extract import MetadataExtractor

# Mock MediaInfo class structure
class MockTrack:
    def __init__(self, track_type="General", **kwargs):
        self.track_type = track_type
        for k, v in kwargs.items():
            setattr(self, k, v)

class MockMediaInfo:
    def __init__(self, tracks):
        self.tracks = tracks

    @classmethod
    def parse(cls, path):
        return cls([
            MockTrack(encoded_date="UTC 2023-01-01 12:00:00"),
            MockTrack(track_type="Video", width=1920, height=1080),
        ])

def local_epoch(*parts):
    return int(datetime(*parts).timestamp())

def test_exif_date_wins_over_filename_and_mtime(make_image):
    path = make_image("2001-01-01_000000.jpg", exif_datetime="2019:05:04 10:20:30", mtime=1_000_000_000)

    meta = MetadataExtractor().extract(path)

    assert meta.timestamp == local_epoch(2019, 5, 4, 10, 20, 30)
    assert meta.timestamp_source == 'embedded'
    assert (meta.width, meta.height) == (64, 48)

def test_filename_date_with_time(make_image):
    path = make_image("2017-11-26_030858.jpg", mtime=1_000_000_000)

    meta = MetadataExtractor().extract(path)

    assert meta.timestamp == local_epoch(2017, 11, 26, 3, 8, 58)
    assert meta.timestamp_source == 'filename'

def test_filename_date_without_time(make_image):
    path = make_image("IMG-2015.06.30-beach.jpg")
    assert MetadataExtractor().extract(path).timestamp == local_epoch(2015, 6, 30)

def test_filename_bad_time_falls_back_to_midnight(make_image):
    path = make_image("2017-11-26_999999.jpg")
    assert MetadataExtractor().extract(path).timestamp == local_epoch(2017, 11, 26)

def test_filename_invalid_date_is_ignored(make_image):
    path = make_image("2017-13-40.jpg", mtime=1_500_000_000)
    meta = MetadataExtractor().extract(path)
    assert meta.timestamp == 1_500_000_000
    assert meta.timestamp_source == 'mtime'

def test_mtime_used_without_exif_or_filename_date(make_image):
    path = make_image("holiday.jpg", mtime=1_500_000_000)

    meta = MetadataExtractor().extract(path)

    assert meta.timestamp == 1_500_000_000
    assert meta.timestamp_source == 'mtime'

def test_undecodable_file_degrades_to_zero_dimensions(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"definitely not a jpeg")

    meta = MetadataExtractor().extract(path)

    assert (meta.width, meta.height) == (0, 0)
    assert meta.timestamp == int(path.stat().st_mtime)

def test_terminal_stage_uses_clock_and_warns(monkeypatch, tmp_path):
    path = tmp_path / "mystery.jpg"
    path.write_bytes(b"junk")
    extractor = MetadataExtractor()
    monkeypatch.setattr(extractor, "_mtime_timestamp", lambda p, kind='photo': None)

    before = int(time.time())
    with pytest.warns(ExtractionDegraded):
        meta = extractor.extract(path)
    after = int(time.time())

    assert before <= meta.timestamp <= after
    assert meta.timestamp_source == 'now'

def test_extract_missing_file_never_raises(tmp_path):
    with pytest.warns(ExtractionDegraded):
        meta = MetadataExtractor().extract(tmp_path / "gone.png")
    assert meta.timestamp > 0
    assert (meta.width, meta.height) == (0, 0)

def test_video_metadata_from_mediainfo(monkeypatch, tmp_path):
    import photo_library.metadata.extract as extract_module
    monkeypatch.setattr(extract_module, "MediaInfo", MockMediaInfo)

    vid = tmp_path / "clip.mp4"
    vid.touch()

    meta = MetadataExtractor().extract(vid)

    assert meta.timestamp == int(datetime(2023, 1, 1, 12, tzinfo=timezone.utc).timestamp())
    assert meta.timestamp_source == 'embedded'
    assert (meta.width, meta.height) == (1920, 1080)
