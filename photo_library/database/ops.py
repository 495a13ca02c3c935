import sqlite3
import logging
import time
from typing import Iterable, List, Sequence, Tuple

from ..exceptions import InvalidArgument, NotFound
from ..models import Album, PhotoRecord

PHOTO_COLUMNS = "path, name, date_taken, width, height, source_type, is_favorite, created_at"


def _row_to_record(row) -> PhotoRecord:
    path, name, date_taken, width, height, source_type, is_favorite, created_at = row
    return PhotoRecord(
        path=path,
        name=name,
        date_taken=int(date_taken),
        width=width or 0,
        height=height or 0,
        source_type=source_type,
        is_favorite=bool(is_favorite),
        created_at=created_at,
    )


class DBOperations:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # --- Photos ---

    def upsert_photos(self, records: Iterable[PhotoRecord]) -> int:
        """
        Inserts or updates photo rows keyed by path.
        Existing rows keep their favorite flag, created_at and album membership.
        """
        now = int(time.time())
        rows = []
        for rec in records:
            if rec.date_taken is None:
                raise InvalidArgument(f"Record without date_taken: {rec.path}")
            rows.append((
                rec.path, rec.name, int(rec.date_taken), rec.width or 0, rec.height or 0,
                rec.source_type, int(rec.is_favorite),
                rec.created_at if rec.created_at is not None else now,
            ))

        if not rows:
            return 0

        self.conn.executemany("""
            INSERT INTO photos (path, name, date_taken, width, height, source_type, is_favorite, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(path) DO UPDATE SET
                name = excluded.name,
                date_taken = excluded.date_taken,
                width = excluded.width,
                height = excluded.height,
                source_type = CASE WHEN photos.source_type = 'uploaded'
                                   THEN photos.source_type ELSE excluded.source_type END
        """, rows)
        logging.debug(f"Upserted {len(rows)} photo rows")
        return len(rows)

    def fetch_all_photos(self) -> List[PhotoRecord]:
        cur = self.conn.cursor()
        cur.execute(f"SELECT {PHOTO_COLUMNS} FROM photos")
        return [_row_to_record(r) for r in cur.fetchall()]

    def fetch_favorites(self) -> List[PhotoRecord]:
        cur = self.conn.cursor()
        cur.execute(f"SELECT {PHOTO_COLUMNS} FROM photos WHERE is_favorite = 1")
        return [_row_to_record(r) for r in cur.fetchall()]

    def fetch_photos_between(self, start: int, end: int) -> List[PhotoRecord]:
        """Photos with start <= date_taken < end."""
        cur = self.conn.cursor()
        cur.execute(
            f"SELECT {PHOTO_COLUMNS} FROM photos WHERE date_taken >= ? AND date_taken < ?",
            (start, end),
        )
        return [_row_to_record(r) for r in cur.fetchall()]

    def count_by_year(self) -> List[Tuple[str, int]]:
        """(year, count) pairs in the local calendar, newest year first."""
        cur = self.conn.cursor()
        cur.execute("""
            SELECT strftime('%Y', date_taken, 'unixepoch', 'localtime') AS year, COUNT(*)
            FROM photos
            GROUP BY year
            ORDER BY year DESC
        """)
        return [(row[0], row[1]) for row in cur.fetchall()]

    def photo_exists(self, path: str) -> bool:
        cur = self.conn.cursor()
        cur.execute("SELECT 1 FROM photos WHERE path = ?", (path,))
        return cur.fetchone() is not None

    def set_favorite(self, path: str, is_favorite: bool):
        cur = self.conn.execute(
            "UPDATE photos SET is_favorite = ? WHERE path = ?",
            (int(bool(is_favorite)), path),
        )
        if cur.rowcount == 0:
            raise NotFound(f"No photo with path {path}")

    def delete_photos(self, paths: Sequence[str]) -> List[str]:
        """
        Removes photo rows; album membership goes with them (ON DELETE CASCADE).
        Files on disk are left alone. Returns the paths that had a row.
        """
        if not paths:
            raise InvalidArgument("No paths given to delete")
        unique = [p for p in dict.fromkeys(paths) if self.photo_exists(p)]
        if not unique:
            return []
        # Explicit cleanup too, in case the connection runs without foreign_keys
        self.conn.executemany("DELETE FROM album_photos WHERE photo_path = ?", [(p,) for p in unique])
        self.conn.executemany("DELETE FROM photos WHERE path = ?", [(p,) for p in unique])
        return unique

    # --- Albums ---

    def create_album(self, name: str) -> Album:
        clean = (name or "").strip()
        if not clean:
            raise InvalidArgument("Album name must not be empty")

        now = int(time.time())
        cur = self.conn.execute(
            "INSERT INTO albums (name, created_at) VALUES (?, ?)",
            (clean, now),
        )
        if cur.lastrowid is None:
            raise RuntimeError("Database INSERT failed to return a row ID.")
        return Album(id=cur.lastrowid, name=clean, created_at=now)

    def album_exists(self, album_id: int) -> bool:
        cur = self.conn.cursor()
        cur.execute("SELECT 1 FROM albums WHERE id = ?", (album_id,))
        return cur.fetchone() is not None

    def add_to_album(self, album_id: int, paths: Sequence[str]):
        """Adds membership rows; pairs already present are ignored."""
        if not paths:
            raise InvalidArgument("No photo paths given")
        if not self.album_exists(album_id):
            raise NotFound(f"No album with id {album_id}")

        unique = list(dict.fromkeys(paths))
        missing = [p for p in unique if not self.photo_exists(p)]
        if missing:
            raise NotFound(f"Unknown photo path(s): {', '.join(missing)}")

        self.conn.executemany(
            "INSERT OR IGNORE INTO album_photos (album_id, photo_path) VALUES (?, ?)",
            [(album_id, p) for p in unique],
        )

    def fetch_album_photos(self, album_id: int) -> List[PhotoRecord]:
        if not self.album_exists(album_id):
            raise NotFound(f"No album with id {album_id}")
        cur = self.conn.cursor()
        cur.execute("""
            SELECT p.path, p.name, p.date_taken, p.width, p.height,
                   p.source_type, p.is_favorite, p.created_at
            FROM photos p
            JOIN album_photos ap ON ap.photo_path = p.path
            WHERE ap.album_id = ?
        """, (album_id,))
        return [_row_to_record(r) for r in cur.fetchall()]

    def fetch_albums(self) -> List[Album]:
        """
        Albums with member count and cover (the member with the newest capture time).
        """
        cur = self.conn.cursor()
        cur.execute("""
            SELECT a.id, a.name, a.created_at,
                   (SELECT COUNT(*) FROM album_photos ap WHERE ap.album_id = a.id),
                   (SELECT p.path FROM album_photos ap
                      JOIN photos p ON p.path = ap.photo_path
                     WHERE ap.album_id = a.id
                     ORDER BY p.date_taken DESC, p.path
                     LIMIT 1)
            FROM albums a
            ORDER BY a.created_at DESC, a.id DESC
        """)
        return [
            Album(id=r[0], name=r[1], created_at=r[2], count=r[3], cover_photo_path=r[4])
            for r in cur.fetchall()
        ]

