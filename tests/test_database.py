import pytest
import sqlite3
from datetime import datetime
from dupe_finder.config import SinkConfig
from dupe_finder.database.db import DBManager
from dupe_finder.database.sink import SQLitePersistenceSink
from dupe_finder.exceptions import PersistenceError

def test_insert_stores_all_columns(db_ops, make_record):
    rec = make_record("/src/notes.pdf", hash="abc123", size=42)
    rec.birth = datetime(2020, 5, 6, 7, 8, 9)

    row_id = db_ops.insert_file_record(rec)

    cur = db_ops.conn.cursor()
    cur.execute("SELECT host, path, name, extension, hash, size, birth, modified FROM files WHERE id = ?", (row_id,))
    host, path, name, ext, file_hash, size, birth, modified = cur.fetchone()
    assert (host, path, name, ext, file_hash, size) == ("host-a", "/src/notes.pdf", "notes.pdf", ".pdf", "abc123", 42)
    assert birth == "2020-05-06T07:08:09"
    assert modified == "2022-01-01T12:00:00"

def test_rescans_append_rows(db_ops, make_record):
    """(host, path) is not unique: a second scan adds a second row."""
    rec = make_record("/src/a.txt", hash="h1")
    id1 = db_ops.insert_file_record(rec)
    id2 = db_ops.insert_file_record(rec)

    assert id1 != id2
    assert db_ops.count_files() == 2

def test_duplicate_groups(db_ops, make_record):
    db_ops.insert_file_record(make_record("/a/one.txt", hash="same"))
    db_ops.insert_file_record(make_record("/b/two.txt", hash="same"))
    db_ops.insert_file_record(make_record("/c/unique.txt", hash="other"))

    groups = db_ops.find_duplicate_groups()

    assert len(groups) == 1
    assert groups[0].hash == "same"
    assert groups[0].copies == 2
    assert groups[0].wasted_bytes == 5
    assert [p for _, p in groups[0].locations] == ["/a/one.txt", "/b/two.txt"]

def test_rescanned_file_is_not_its_own_duplicate(db_ops, make_record):
    rec = make_record("/a/one.txt", hash="same")
    db_ops.insert_file_record(rec)
    db_ops.insert_file_record(rec)

    assert db_ops.find_duplicate_groups() == []

def test_same_hash_different_size_not_grouped(db_ops, make_record):
    db_ops.insert_file_record(make_record("/a/one.txt", hash="same", size=5))
    db_ops.insert_file_record(make_record("/a/two.txt", hash="same", size=6))

    assert db_ops.find_duplicate_groups() == []

def test_duplicate_groups_filtered_by_host(db_ops, make_record):
    db_ops.insert_file_record(make_record("/a/one.txt", hash="same", host="laptop"))
    db_ops.insert_file_record(make_record("/a/one.txt", hash="same", host="server"))

    assert len(db_ops.find_duplicate_groups()) == 1
    assert db_ops.find_duplicate_groups(host="laptop") == []
    assert db_ops.count_files(host="server") == 1

def test_sink_commits_on_close(tmp_path, make_record):
    db_path = tmp_path / "files.db"
    sink = SQLitePersistenceSink(SinkConfig(db_path=db_path, commit_interval=100))

    sink.open()
    sink.store(make_record("/x/a.txt", hash="h1"))
    sink.store(make_record("/x/b.txt", hash="h2"))
    sink.close()

    conn = sqlite3.connect(db_path)
    try:
        assert conn.execute("SELECT COUNT(*) FROM files").fetchone()[0] == 2
    finally:
        conn.close()

def test_sink_requires_open(tmp_path, make_record):
    sink = SQLitePersistenceSink(SinkConfig(db_path=tmp_path / "files.db"))

    with pytest.raises(PersistenceError):
        sink.store(make_record("/x/a.txt", hash="h1"))

    # Closing an unopened sink is harmless
    sink.close()

def test_db_manager_reports_unopenable_database(tmp_path):
    manager = DBManager(tmp_path / "no_such_dir" / "files.db")

    with pytest.raises(PersistenceError):
        manager.connect()

def test_db_manager_creates_schema(tmp_path):
    with DBManager(tmp_path / "files.db") as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"files", "schema_version"} <= tables
