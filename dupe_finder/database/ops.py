import sqlite3
from datetime import datetime, UTC
from typing import Dict, List, Optional, Tuple

from ..models import DuplicateGroup, FileRecord

def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None

class DBOperations:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def insert_file_record(self, rec: FileRecord) -> int:
        """Appends a row for the record. Rescans of the same path add new rows."""
        now_iso = datetime.now(UTC).isoformat()
        cur = self.conn.cursor()
        cur.execute("""
            INSERT INTO files (
                host, path, name, extension, hash, size,
                changed, modified, accessed, birth, scanned_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            rec.host, str(rec.path), rec.name, rec.ext, rec.hash, rec.size,
            _ts(rec.changed), _ts(rec.modified), _ts(rec.accessed), _ts(rec.birth),
            now_iso,
        ))

        if cur.lastrowid is None:
            raise RuntimeError("Database INSERT failed to return a row ID.")
        return cur.lastrowid

    def count_files(self, host: Optional[str] = None) -> int:
        cur = self.conn.cursor()
        if host is None:
            cur.execute("SELECT COUNT(*) FROM files")
        else:
            cur.execute("SELECT COUNT(*) FROM files WHERE host = ?", (host,))
        return cur.fetchone()[0]

    def find_duplicate_groups(self, host: Optional[str] = None) -> List[DuplicateGroup]:
        """
        Groups stored files by (hash, size) and returns every group with more
        than one distinct (host, path). Repeated scans of one file do not
        count as duplicates.
        """
        cur = self.conn.cursor()
        query = """
            SELECT DISTINCT hash, size, host, path
            FROM files
            WHERE hash IS NOT NULL AND hash != ''
        """
        params: Tuple = ()
        if host is not None:
            query += " AND host = ?"
            params = (host,)
        query += " ORDER BY hash, size, host, path"
        cur.execute(query, params)

        groups: Dict[Tuple[str, int], List[Tuple[str, str]]] = {}
        for file_hash, size, row_host, path in cur.fetchall():
            groups.setdefault((file_hash, size), []).append((row_host, path))

        return [
            DuplicateGroup(hash=file_hash, size=size, locations=locations)
            for (file_hash, size), locations in groups.items()
            if len(locations) > 1
        ]
