import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple


class ErrorPolicy(str, Enum):
    ABORT = "abort"  # First error cancels the whole run
    SKIP = "skip"    # Log the error, leave the entry out, keep going


@dataclass(frozen=True)
class Timestamps:
    accessed: datetime
    modified: datetime
    changed: datetime
    birth: datetime


@dataclass
class FileRecord:
    """
    Represents a regular file found during a scan.

    `hash` stays empty until a hash worker attaches the fingerprint.
    """
    host: str
    path: Path
    name: str
    ext: str
    size: int
    accessed: datetime
    modified: datetime
    changed: datetime
    birth: datetime
    hash: str = ""


@dataclass(frozen=True)
class DirectoryRecord:
    """Represents a directory found during a scan. Never fingerprinted."""
    path: Path
    name: str
    accessed: datetime
    modified: datetime
    changed: datetime
    birth: datetime


@dataclass
class DuplicateGroup:
    """Stored files sharing one fingerprint and size."""
    hash: str
    size: int
    locations: List[Tuple[str, str]]  # (host, path)

    @property
    def copies(self) -> int:
        return len(self.locations)

    @property
    def wasted_bytes(self) -> int:
        return self.size * (self.copies - 1)


@dataclass(frozen=True)
class ScanIssue:
    path: Optional[Path]
    kind: str
    message: str


@dataclass
class ScanSummary:
    """
    Outcome of one run.

    Each counter has a single writer thread: the walker counts directories
    and discovered files, the persistence stage counts what was stored.
    Issues may come from any thread.
    """
    root: Path
    directories: int = 0
    files_discovered: int = 0
    files_stored: int = 0
    bytes_stored: int = 0
    issues: List[ScanIssue] = field(default_factory=list)
    error: Optional[BaseException] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_issue(self, exc: BaseException):
        issue = ScanIssue(
            path=getattr(exc, "path", None),
            kind=type(exc).__name__,
            message=str(exc),
        )
        with self._lock:
            self.issues.append(issue)

    @property
    def ok(self) -> bool:
        return self.error is None
