import logging
import os
import re
import time
import warnings
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

import exifread
from PIL import Image
from pillow_heif import register_heif_opener
from pymediainfo import MediaInfo

from .. import config
from ..exceptions import ExtractionDegraded
from ..models import ExtractedMetadata
from ..scanning.filesystem import classify

# Lets Pillow read HEIC headers for dimensions
register_heif_opener()

_FILENAME_DATE_RE = re.compile(config.FILENAME_DATE_PATTERN)


class MetadataExtractor:
    """
    Resolves a capture timestamp and pixel dimensions for a media file.

    Timestamp stages, first hit wins:
      1. Embedded capture time ('exifread' for photos, 'pymediainfo' for video)
      2. Date in the filename (YYYY-MM-DD[_HHMMSS])
      3. Filesystem mtime
      4. Wall-clock time (always succeeds; warns)

    Never raises. Only reads the source file.
    """

    def extract(self, path: Path) -> ExtractedMetadata:
        path = Path(path)
        kind = classify(path)

        stages: List[Tuple[str, Callable[[Path, str], Optional[int]]]] = [
            ('embedded', self._embedded_timestamp),
            ('filename', self._filename_timestamp),
            ('mtime', self._mtime_timestamp),
        ]

        timestamp = None
        source = 'now'
        for name, stage in stages:
            timestamp = stage(path, kind)
            if timestamp is not None:
                source = name
                break
            logging.debug(f"No {name} timestamp for {path}, trying next source")

        if timestamp is None:
            timestamp = self._now_timestamp(path)
        elif source != 'embedded':
            logging.debug(f"Using {source} as capture time for {path}")

        width, height = self._dimensions(path, kind)
        return ExtractedMetadata(
            timestamp=timestamp,
            width=width,
            height=height,
            timestamp_source=source,
        )

    # --- Timestamp Stages ---

    def _embedded_timestamp(self, path: Path, kind: str) -> Optional[int]:
        if kind == 'video':
            return self._video_timestamp(path)
        return self._exif_timestamp(path)

    def _exif_timestamp(self, path: Path) -> Optional[int]:
        try:
            with path.open('rb') as f:
                # details=False skips makernotes and thumbnails
                tags = exifread.process_file(f, details=False)
        except Exception as e:
            logging.debug(f"ExifRead failed for {path}: {e}")
            return None

        for tag in config.DATE_TAGS:
            if tag not in tags:
                continue
            dt = self._parse_exif_date(str(tags[tag]))
            ts = self._to_epoch(dt) if dt is not None else None
            if ts is not None:
                return ts
        return None

    def _video_timestamp(self, path: Path) -> Optional[int]:
        try:
            mi = MediaInfo.parse(str(path))
        except Exception as e:
            logging.debug(f"MediaInfo failed for {path}: {e}")
            return None

        for track in mi.tracks:
            if track.track_type != "General":
                continue
            for field in config.VIDEO_DATE_FIELDS:
                val = getattr(track, field, None)
                if not val:
                    continue
                dt = self._parse_flexible_date(str(val))
                ts = self._to_epoch(dt) if dt is not None else None
                if ts is not None:
                    return ts
        return None

    def _filename_timestamp(self, path: Path, kind: str = 'photo') -> Optional[int]:
        match = _FILENAME_DATE_RE.search(path.stem)
        if not match:
            return None

        year, month, day, hh, mm, ss = match.groups()
        candidates = []
        if hh is not None:
            candidates.append((int(year), int(month), int(day), int(hh), int(mm), int(ss)))
        # An impossible time ("_999999") still leaves a usable date
        candidates.append((int(year), int(month), int(day), 0, 0, 0))

        for parts in candidates:
            try:
                dt = datetime(*parts)
            except ValueError:
                continue
            ts = self._to_epoch(dt)
            if ts is not None:
                return ts
        return None

    def _mtime_timestamp(self, path: Path, kind: str = 'photo') -> Optional[int]:
        try:
            return int(os.stat(path).st_mtime)
        except OSError as e:
            logging.debug(f"Cannot stat {path}: {e}")
            return None

    def _now_timestamp(self, path: Path) -> int:
        msg = f"No reliable capture time for {path}; using current time"
        logging.warning(msg)
        warnings.warn(msg, ExtractionDegraded, stacklevel=3)
        return int(time.time())

    # --- Dimensions ---

    def _dimensions(self, path: Path, kind: str) -> Tuple[int, int]:
        try:
            if kind == 'video':
                width, height = self._video_dimensions(path)
            else:
                # Image.open only decodes the header
                with Image.open(path) as im:
                    width, height = im.size
        except Exception as e:
            logging.debug(f"Could not read dimensions for {path}: {e}")
            return 0, 0

        if not width or not height or width < 0 or height < 0:
            return 0, 0
        return int(width), int(height)

    def _video_dimensions(self, path: Path) -> Tuple[int, int]:
        mi: Any = MediaInfo.parse(str(path))
        for track in mi.tracks:
            if track.track_type == "Video":
                return int(track.width or 0), int(track.height or 0)
        return 0, 0

    # --- Parsing Helpers ---

    def _parse_exif_date(self, dt_str: str) -> Optional[datetime]:
        """EXIF format is "YYYY:MM:DD HH:MM:SS", sometimes with trailing junk."""
        clean = dt_str.strip().replace(':', '-', 2)
        if "." in clean:
            clean = clean.split(".")[0]
        try:
            return datetime.strptime(clean[:19], "%Y-%m-%d %H:%M:%S")
        except ValueError:
            return None

    def _parse_flexible_date(self, dt_str: str) -> Optional[datetime]:
        """
        Handles MediaInfo date styles ("UTC 2023-01-01 12:00:00",
        "2023-01-01T12:00:00+02:00"). A UTC marker yields an aware datetime.
        """
        if not dt_str:
            return None

        is_utc = "UTC" in dt_str
        clean = dt_str.replace("UTC", "").strip()

        dt = None
        try:
            dt = datetime.fromisoformat(clean)
        except ValueError:
            dt = self._parse_exif_date(clean)

        if dt is not None and is_utc and dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    def _to_epoch(self, dt: datetime) -> Optional[int]:
        # Naive datetimes are camera-local wall time
        try:
            return int(dt.timestamp())
        except (ValueError, OverflowError, OSError):
            return None
