"""
Configuration constants and option objects for the duplicate finder.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .models import ErrorPolicy

# --- Hashing & Performance ---
HASH_CHUNK_SIZE = 64 * 1024  # 64 KB chunks for reading
HASH_WORKERS = 3
FILE_QUEUE_SIZE = 3  # Records waiting for a hash worker before the walker blocks

# How often blocked queue operations wake up to check the cancel token (seconds)
POLL_INTERVAL = 0.05

# --- Persistence ---
DEFAULT_DB_NAME = "dupedb.sqlite3"
COMMIT_INTERVAL = 1000

# --- Console Output ---
TIMESTAMP_FORMAT = "%m-%d-%Y %H:%M:%S"


@dataclass
class SinkConfig:
    """Where and how file records are persisted."""
    db_path: Path
    commit_interval: int = COMMIT_INTERVAL


@dataclass
class ScanOptions:
    root: Path
    host: str
    workers: int = HASH_WORKERS
    queue_size: int = FILE_QUEUE_SIZE
    error_policy: ErrorPolicy = ErrorPolicy.ABORT
    include_root: bool = False

    # Output toggles (the original printed folders but not files)
    show_files: bool = False
    show_dirs: bool = True
    progress: bool = False

    # None disables persistence entirely
    sink: Optional[SinkConfig] = None
