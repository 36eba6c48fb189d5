"""
Custom exception hierarchy for the duplicate finder.

Scan errors carry the path they relate to so that the skip policy can
report which entries were left out of a run.
"""
from pathlib import Path
from typing import Optional, Union


class DupeFinderError(Exception):
    """Base exception for all duplicate finder errors."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class TraversalError(DupeFinderError):
    """Raised when a directory cannot be listed or a path cannot be resolved."""
    pass


class MetadataError(DupeFinderError):
    """Raised when a path cannot be stat-ed."""
    pass


class HashIOError(DupeFinderError):
    """Raised when a file cannot be opened or fully read while fingerprinting."""
    pass


class PersistenceError(DupeFinderError):
    """Raised when the persistence sink rejects a record."""
    pass


class ScanCancelled(DupeFinderError):
    """Raised at a suspension point once the run's cancel token is set."""

    def __init__(self, message: str = "Scan cancelled"):
        super().__init__(message)
