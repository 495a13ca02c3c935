"""
Configuration constants for the photo library.
"""
import os
from pathlib import Path

# --- File Type Definitions ---
PHOTO_EXTS = {'.jpg', '.jpeg', '.png', '.heic', '.webp', '.gif', '.bmp', '.tif', '.tiff'}
VIDEO_EXTS = {'.mp4', '.mov', '.avi', '.webm', '.mkv'}

# Extension to Type Mapping
# Anything missing from this map is 'unsupported'
EXT_TO_TYPE = {}
for ext in PHOTO_EXTS: EXT_TO_TYPE[ext] = 'photo'
for ext in VIDEO_EXTS: EXT_TO_TYPE[ext] = 'video'

SOURCE_SCANNED = 'scanned'
SOURCE_UPLOADED = 'uploaded'

# --- Metadata Parsing ---
DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'EXIF DateTimeDigitized',
    'Image DateTime',
]

# pymediainfo General track fields, most trustworthy first
VIDEO_DATE_FIELDS = [
    'recorded_date',
    'encoded_date',
    'tagged_date',
]

# YYYY-MM-DD with an optional HHMMSS group, e.g. "2017-11-26_030858.jpg"
FILENAME_DATE_PATTERN = (
    r'(?<!\d)(\d{4})[-_.](\d{2})[-_.](\d{2})'
    r'(?:[-_ T.]?(\d{2})(\d{2})(\d{2}))?(?!\d)'
)

# --- Organization ---
FOLDER_PATTERN = "{year}/{month:02d}"

# --- Performance ---
DEFAULT_MAX_WORKERS = os.cpu_count() or 4

# Seconds a connection waits on a locked database before giving up
DB_TIMEOUT_SEC = 30.0

# --- Locations ---
DB_ENV_VAR = "PHOTO_LIBRARY_DB"
LIBRARY_ENV_VAR = "PHOTO_LIBRARY_ROOT"
DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "photo_library"
DEFAULT_LIBRARY_DIR = Path.home() / "Pictures" / "PhotoLibrary"


def get_db_path() -> Path:
    """Location of the catalog database (env override, else the user data dir)."""
    override = os.environ.get(DB_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_DATA_DIR / "photos.db"


def get_library_path() -> Path:
    """Root of the managed library tree."""
    override = os.environ.get(LIBRARY_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_LIBRARY_DIR
