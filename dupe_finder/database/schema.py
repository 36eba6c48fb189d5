"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Applies the core schema to the database.
    Idempotent: safe to run on every startup.
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
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. One row per file per scan. (host, path) is the natural key but is
        # deliberately not unique: rescanning appends rows.
        conn.execute("""
        CREATE TABLE IF NOT EXISTS files (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            host        TEXT NOT NULL,
            path        TEXT NOT NULL,
            name        TEXT NOT NULL,
            extension   TEXT,
            hash        TEXT,                 -- SHA-512, lowercase hex
            size        INTEGER,
            changed     TEXT,
            modified    TEXT,
            accessed    TEXT,
            birth       TEXT,
            scanned_at  TEXT NOT NULL
        );
        """)

        # 3. Indices for duplicate lookups
        conn.execute("CREATE INDEX IF NOT EXISTS idx_files_hash ON files(hash);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_files_host_path ON files(host, path);")

    logging.debug("Database schema initialized.")
