"""
Database connection management.

There is no long-lived connection: every store operation opens one,
commits and closes it before returning.
"""
import sqlite3
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .. import config
from ..exceptions import StoreUnavailable
from .schema import init_schema

class DBManager:
    def __init__(self, db_path: Path, timeout: float = config.DB_TIMEOUT_SEC):
        self.db_path = Path(db_path)
        self.timeout = timeout
        # SQLite WAL mode allows multiple readers, but writes need serialization
        self._write_lock = threading.Lock()

    def connect(self) -> sqlite3.Connection:
        """
        Opens a new connection, configures pragmas and ensures the schema.
        """
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailable(f"Cannot open database {self.db_path}: {e}") from e

        try:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA foreign_keys=ON;")
            init_schema(conn)
        except sqlite3.Error as e:
            conn.close()
            raise StoreUnavailable(f"Cannot initialize database {self.db_path}: {e}") from e

        return conn

    @contextmanager
    def session(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Yields a fresh connection for one operation. Commits on success,
        rolls back on error, always closes. Lock and I/O failures surface
        as StoreUnavailable; other errors propagate unchanged.
        """
        lock = self._write_lock if write else None
        if lock:
            lock.acquire()
        try:
            conn = self.connect()
            try:
                if write:
                    # SQLite write lock held for the whole operation, reads included
                    conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.commit()
            except sqlite3.OperationalError as e:
                conn.rollback()
                logging.error(f"Database operation failed on {self.db_path}: {e}")
                raise StoreUnavailable(f"Database unavailable: {e}") from e
            except BaseException:
                conn.rollback()
                raise
            finally:
                conn.close()
        finally:
            if lock:
                lock.release()

