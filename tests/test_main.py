import csv
import sqlite3
import pytest
from dupe_finder import main as cli


@pytest.fixture
def tree(tmp_path):
    root = tmp_path / "scan"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"hello")
    (root / "sub" / "b.txt").write_bytes(b"hello")
    (root / "sub" / "c.txt").write_bytes(b"unique")
    return root

def test_scan_then_report(tree, tmp_path):
    db = tmp_path / "dupes.db"

    assert cli.main(["--path", str(tree), "--db", str(db), "--host", "box1"]) == 0

    conn = sqlite3.connect(db)
    try:
        rows = conn.execute("SELECT host, COUNT(*) FROM files GROUP BY host").fetchall()
    finally:
        conn.close()
    assert rows == [("box1", 3)]

    report = tmp_path / "dupes.csv"
    assert cli.main(["--report", str(report), "--db", str(db)]) == 0
    with open(report, "r", encoding="utf-8") as f:
        paths = sorted(row["Path"] for row in csv.DictReader(f))
    assert paths == [str(tree / "a.txt"), str(tree / "sub" / "b.txt")]

def test_no_save_skips_database(tree, tmp_path):
    db = tmp_path / "never.db"
    assert cli.main(["--path", str(tree), "--db", str(db), "--no-save", "--show-files"]) == 0
    assert not db.exists()

def test_missing_path_exits_nonzero(tmp_path):
    assert cli.main(["--path", str(tmp_path / "nope"), "--no-save"]) == 1

def test_report_needs_existing_db(tmp_path):
    assert cli.main(["--report", str(tmp_path / "r.csv"), "--db", str(tmp_path / "missing.db")]) == 1

def test_skip_policy_flag(tree, tmp_path):
    db = tmp_path / "dupes.db"
    assert cli.main(["--path", str(tree), "--db", str(db), "--on-error", "skip", "--include-root"]) == 0

def test_rejects_zero_workers():
    with pytest.raises(SystemExit):
        cli.parse_args(["--workers", "0"])

def test_defaults():
    args = cli.parse_args([])
    assert str(args.path) == "."
    assert args.workers == 3
    assert args.queue_size == 3
    assert args.on_error == "abort"
    assert args.host is None
