import logging
from collections import OrderedDict
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from . import config
from .core import IngestionOrchestrator
from .database.store import MetadataStore
from .exceptions import InvalidArgument
from .models import Album, IngestResult, PhotoRecord
from .organization.library import LibraryWriter


def newest_first(records: List[PhotoRecord]) -> List[PhotoRecord]:
    """Presentation order: newest capture first, path as a stable tie-break."""
    return sorted(records, key=lambda r: (-r.date_taken, r.path))


class PhotoLibraryApp:
    """
    The callable surface used by clients (UI, CLI). Holds no state of its
    own; every call goes through the store.
    """
    def __init__(self,
                 db_path: Optional[Path] = None,
                 library_root: Optional[Path] = None,
                 max_workers: int = config.DEFAULT_MAX_WORKERS,
                 show_progress: bool = False):
        self.store = MetadataStore(db_path or config.get_db_path())
        self.writer = LibraryWriter(library_root or config.get_library_path())
        self.orchestrator = IngestionOrchestrator(
            store=self.store,
            writer=self.writer,
            max_workers=max_workers,
            show_progress=show_progress,
        )

    # --- Ingestion ---

    def scan_directory(self, dir_path: Union[str, Path], save_to_db: bool = False) -> IngestResult:
        return self.orchestrator.scan(dir_path, persist=save_to_db)

    def upload_photos(self, file_paths: Sequence[Union[str, Path]]) -> IngestResult:
        return self.orchestrator.upload(file_paths)

    # --- Queries ---

    def get_all_photos(self) -> List[PhotoRecord]:
        return newest_first(self.store.list_all())

    def get_album_photos(self, album_id: int) -> List[PhotoRecord]:
        return newest_first(self.store.list_by_album(album_id))

    def get_favorites(self) -> List[PhotoRecord]:
        return newest_first(self.store.list_favorites())

    def get_photos_by_month(self, year: int, month: int) -> List[PhotoRecord]:
        return newest_first(self.store.list_by_month(year, month))

    def get_photo_counts_by_year(self) -> List[Tuple[str, int]]:
        return self.store.count_by_year()

    def get_albums(self) -> List[Album]:
        return self.store.list_albums()

    # --- Mutations ---

    def create_album(self, name: str) -> Album:
        return self.store.create_album(name)

    def add_to_album(self, album_id: int, photo_paths: Sequence[str]):
        self.store.add_to_album(album_id, list(photo_paths))

    def toggle_favorite(self, path: str, is_favorite: bool):
        self.store.set_favorite(path, is_favorite)

    def delete_photos(self, paths: Sequence[str]) -> int:
        """
        Removes the records, then the managed files. Rows go first so a
        record never outlives its file; a file that cannot be removed is
        only logged. Only files that had a record are unlinked, and files
        outside the library root are left untouched.
        """
        removed = self.store.delete_photos(list(paths))

        for path in removed:
            if not self.writer.contains(path):
                logging.debug(f"Not deleting {path}: outside managed library")
                continue
            try:
                if not self.writer.remove(path):
                    logging.warning(f"Managed file already missing: {path}")
            except OSError as e:
                logging.error(f"Failed to delete file {path}: {e}")
        return len(removed)


def group_photos(records: List[PhotoRecord], mode: str = "month") -> Dict[str, List[PhotoRecord]]:
    """
    Buckets records newest-first by local calendar period.
    mode: 'all' (single bucket), 'year' ("2024") or 'month' ("2024-03").
    """
    if mode not in ("all", "year", "month"):
        raise InvalidArgument(f"Unknown grouping mode: {mode}")

    groups: Dict[str, List[PhotoRecord]] = OrderedDict()
    for rec in newest_first(records):
        if mode == "all":
            key = "all"
        else:
            dt = datetime.fromtimestamp(rec.date_taken)
            key = f"{dt.year}" if mode == "year" else f"{dt.year}-{dt.month:02d}"
        groups.setdefault(key, []).append(rec)
    return groups
