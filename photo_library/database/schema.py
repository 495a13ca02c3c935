"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Applies the core schema to the database.
    Idempotent: safe to run on every connection.
    """
    with conn:
        # 1. Version Tracking (For future migrations)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. Photos
        # `path` is the identity of a record; it is always canonical
        conn.execute("""
        CREATE TABLE IF NOT EXISTS photos (
            path            TEXT PRIMARY KEY,
            name            TEXT,
            date_taken      INTEGER NOT NULL,
            width           INTEGER,
            height          INTEGER,
            source_type     TEXT,
            is_favorite     INTEGER DEFAULT 0,
            created_at      INTEGER
        );
        """)

        # 3. Albums
        conn.execute("""
        CREATE TABLE IF NOT EXISTS albums (
            id              INTEGER PRIMARY KEY,
            name            TEXT NOT NULL,
            created_at      INTEGER
        );
        """)

        # 4. Album Membership (many-to-many)
        conn.execute("""
        CREATE TABLE IF NOT EXISTS album_photos (
            album_id        INTEGER,
            photo_path      TEXT,
            PRIMARY KEY (album_id, photo_path),
            FOREIGN KEY(album_id) REFERENCES albums(id) ON DELETE CASCADE,
            FOREIGN KEY(photo_path) REFERENCES photos(path) ON DELETE CASCADE
        );
        """)

        # 5. Indices for Performance
        conn.execute("CREATE INDEX IF NOT EXISTS idx_photos_date_taken ON photos(date_taken DESC);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_album_photos_path ON album_photos(photo_path);")

    logging.debug("Database schema initialized.")
