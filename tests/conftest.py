import pytest
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from dupe_finder.database.schema import init_schema
from dupe_finder.database.ops import DBOperations
from dupe_finder.models import FileRecord

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


class RecordingSink:
    """Persistence sink that keeps stored records in memory."""

    def __init__(self):
        self.records = []
        self.opened = False
        self.closed = False
        self.lock = threading.Lock()

    def open(self):
        self.opened = True

    def store(self, record):
        with self.lock:
            self.records.append(record)

    def close(self):
        self.closed = True


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def make_record():
    """Factory for FileRecords with fixed timestamps."""
    def _make(path, hash="", host="host-a", size=5):
        dt = datetime(2022, 1, 1, 12, 0, 0)
        path = Path(path)
        return FileRecord(
            host=host,
            path=path,
            name=path.name,
            ext=path.suffix,
            size=size,
            accessed=dt,
            modified=dt,
            changed=dt,
            birth=dt,
            hash=hash,
        )
    return _make
