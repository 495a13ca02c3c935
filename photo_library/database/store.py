"""
Per-operation facade over the catalog database.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Sequence, Tuple

from ..exceptions import InvalidArgument
from ..models import Album, PhotoRecord
from .db import DBManager
from .ops import DBOperations


class MetadataStore:
    """
    Every method opens its own connection, commits and closes it before
    returning. Writers are serialized; readers never hold a connection
    between calls, so each query sees the latest committed state.
    """
    def __init__(self, db_path: Path):
        self.db_manager = DBManager(db_path)

    @property
    def db_path(self) -> Path:
        return self.db_manager.db_path

    # --- Mutations ---

    def insert_or_update(self, records: Sequence[PhotoRecord]) -> int:
        if not records:
            return 0
        with self.db_manager.session(write=True) as conn:
            count = DBOperations(conn).upsert_photos(records)
        logging.info(f"Stored {count} photo records")
        return count

    def set_favorite(self, path: str, is_favorite: bool):
        with self.db_manager.session(write=True) as conn:
            DBOperations(conn).set_favorite(path, is_favorite)

    def create_album(self, name: str) -> Album:
        with self.db_manager.session(write=True) as conn:
            album = DBOperations(conn).create_album(name)
        logging.info(f"Created album {album.id} '{album.name}'")
        return album

    def add_to_album(self, album_id: int, paths: Sequence[str]):
        with self.db_manager.session(write=True) as conn:
            DBOperations(conn).add_to_album(album_id, paths)

    def delete_photos(self, paths: Sequence[str]) -> List[str]:
        with self.db_manager.session(write=True) as conn:
            removed = DBOperations(conn).delete_photos(paths)
        logging.info(f"Deleted {len(removed)} photo records")
        return removed

    # --- Queries ---

    def list_all(self) -> List[PhotoRecord]:
        with self.db_manager.session() as conn:
            return DBOperations(conn).fetch_all_photos()

    def list_by_album(self, album_id: int) -> List[PhotoRecord]:
        with self.db_manager.session() as conn:
            return DBOperations(conn).fetch_album_photos(album_id)

    def list_albums(self) -> List[Album]:
        with self.db_manager.session() as conn:
            return DBOperations(conn).fetch_albums()

    def list_favorites(self) -> List[PhotoRecord]:
        with self.db_manager.session() as conn:
            return DBOperations(conn).fetch_favorites()

    def list_by_month(self, year: int, month: int) -> List[PhotoRecord]:
        """Photos captured in the given local calendar month."""
        if not 1 <= month <= 12:
            raise InvalidArgument(f"Month out of range: {month}")
        try:
            start = datetime(year, month, 1)
            end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
            bounds = int(start.timestamp()), int(end.timestamp())
        except (ValueError, OverflowError, OSError) as e:
            raise InvalidArgument(f"Year out of range: {year}") from e
        with self.db_manager.session() as conn:
            return DBOperations(conn).fetch_photos_between(*bounds)

    def count_by_year(self) -> List[Tuple[str, int]]:
        with self.db_manager.session() as conn:
            return DBOperations(conn).count_by_year()

    def photo_exists(self, path: str) -> bool:
        with self.db_manager.session() as conn:
            return DBOperations(conn).photo_exists(path)
