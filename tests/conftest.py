import os
import pytest
import sqlite3
from PIL import Image
from photo_library.database.schema import init_schema
from photo_library.database.ops import DBOperations
from photo_library.database.store import MetadataStore
from photo_library.commands import PhotoLibraryApp

@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:")
    init_schema(c)
    try:
        yield c
    finally:
        c.close()

@pytest.fixture
def db_ops(conn):
    """Returns a DBOperations instance attached to the in-memory DB."""
    return DBOperations(conn)

@pytest.fixture
def store(tmp_path):
    """A file-backed store; every call opens its own connection."""
    return MetadataStore(tmp_path / "catalog" / "photos.db")

@pytest.fixture
def app(tmp_path):
    return PhotoLibraryApp(
        db_path=tmp_path / "catalog" / "photos.db",
        library_root=tmp_path / "library",
        max_workers=4,
    )

@pytest.fixture
def make_image(tmp_path):
    """
    Writes a small JPEG. `exif_datetime` goes into the IFD0 DateTime tag,
    `mtime` pins the file modification time.
    """
    def _make(name, size=(64, 48), exif_datetime=None, mtime=None, folder=None):
        folder = folder or (tmp_path / "src")
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / name
        img = Image.new("RGB", size, "red")
        if exif_datetime:
            exif = Image.Exif()
            exif[0x0132] = exif_datetime
            img.save(path, "JPEG", exif=exif.tobytes())
        else:
            img.save(path, "JPEG")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path
    return _make
