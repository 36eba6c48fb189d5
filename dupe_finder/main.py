import argparse
import logging
import socket
import sqlite3
import sys
from pathlib import Path
from typing import Optional

from . import config
from .config import ScanOptions, SinkConfig
from .core import DupeFinderApp
from .database.ops import DBOperations
from .exceptions import DupeFinderError
from .models import ErrorPolicy
from .reporting import DuplicateReportGenerator

def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, a log file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="DupeFinder: fingerprint every file under a path for duplicate analysis")

    p.add_argument("--path", type=Path, default=Path("."), help="Path to scan (default: current directory)")
    p.add_argument("--host", default=None, help="Host identifier stored with every file (default: hostname); filters --report")
    p.add_argument("--db", type=Path, default=Path(config.DEFAULT_DB_NAME), help="SQLite database for file records")

    p.add_argument("--workers", type=int, default=config.HASH_WORKERS, help="Number of hash workers")
    p.add_argument("--queue-size", type=int, default=config.FILE_QUEUE_SIZE, help="Files waiting for a hash worker before the walk blocks")
    p.add_argument("--on-error", choices=[policy.value for policy in ErrorPolicy], default=ErrorPolicy.ABORT.value,
                   help="abort the run on the first I/O error, or skip the entry and continue")
    p.add_argument("--include-root", action="store_true", help="Report the scan root as a directory too")

    p.add_argument("--show-files", action="store_true", help="Print every hashed file")
    p.add_argument("--hide-dirs", action="store_true", help="Do not print directories")
    p.add_argument("--progress", action="store_true", help="Show a progress counter")
    p.add_argument("--no-save", action="store_true", help="Do not write records to the database")

    p.add_argument("--report", type=str, default=None, metavar="CSV",
                   help="Write a duplicate report from the database to CSV instead of scanning")

    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")

    args = p.parse_args(argv)
    if args.workers < 1:
        p.error("--workers must be at least 1")
    if args.queue_size < 1:
        p.error("--queue-size must be at least 1")
    return args

def run_report(db_path: Path, output_csv: str, host: Optional[str]) -> int:
    if not db_path.exists():
        logging.error(f"Database not found at {db_path}. Cannot generate report without an existing scan.")
        return 1

    logging.info("ENTERING REPORT MODE")
    conn = sqlite3.connect(db_path)
    try:
        reporter = DuplicateReportGenerator(DBOperations(conn))
        reporter.generate_duplicate_report(output_csv, host=host)
    except (sqlite3.Error, OSError):
        logging.exception("Failed to generate report.")
        return 1
    finally:
        conn.close()
    return 0

def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    if args.report:
        return run_report(args.db, args.report, args.host)

    host = args.host or socket.gethostname()
    logging.info("=== DupeFinder Started ===")
    logging.info(f"Path: {args.path.resolve()}")
    logging.info(f"Host: {host}")

    options = ScanOptions(
        root=args.path,
        host=host,
        workers=args.workers,
        queue_size=args.queue_size,
        error_policy=ErrorPolicy(args.on_error),
        include_root=args.include_root,
        show_files=args.show_files,
        show_dirs=not args.hide_dirs,
        progress=args.progress,
        sink=None if args.no_save else SinkConfig(db_path=args.db),
    )
    app = DupeFinderApp(options)

    try:
        summary = app.scan()
    except KeyboardInterrupt:
        logging.warning("Scan cancelled by user.")
        return 130
    except DupeFinderError as e:
        logging.error(f"Scan aborted: {e}")
        return 1
    except Exception:
        logging.exception("Fatal error during scan.")
        return 1

    logging.info(
        f"Discovered {summary.files_discovered} files and {summary.directories} directories, "
        f"{summary.files_stored} files reached the last stage."
    )
    for issue in summary.issues:
        logging.warning(f"Skipped {issue.path}: {issue.kind}: {issue.message}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
