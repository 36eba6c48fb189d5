import os
import stat
import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Union

from ..exceptions import DupeFinderError, MetadataError, TraversalError
from ..models import DirectoryRecord, FileRecord
from .metadata import MetadataProbe

FileCallback = Callable[[FileRecord], None]
DirectoryCallback = Callable[[DirectoryRecord], None]
ErrorCallback = Callable[[DupeFinderError], None]


def extension(name: str) -> str:
    """Everything from the last dot on, so '.bashrc' -> '.bashrc' and 'a.' -> '.'."""
    i = name.rfind(".")
    return name[i:] if i >= 0 else ""


class TreeWalker:
    """
    Enumerates everything below a root and turns it into records.

    Directories become DirectoryRecords, regular files become FileRecords
    with an empty hash. Symlinks are classified by their target but never
    descended into; dangling links and special files are reported as errors.
    """

    def __init__(self,
                 host: str,
                 probe: Optional[MetadataProbe] = None,
                 include_root: bool = False,
                 cancel: Optional[threading.Event] = None):
        self.host = host
        self.probe = probe or MetadataProbe()
        self.include_root = include_root
        self.cancel = cancel if cancel is not None else threading.Event()

    def walk(self,
             root: Union[str, Path],
             on_file: FileCallback,
             on_directory: DirectoryCallback,
             on_error: Optional[ErrorCallback] = None):
        """
        Depth-first walk using os.scandir. Children are visited in listing
        order; nothing is sorted.

        With on_error=None the first TraversalError/MetadataError propagates
        and the walk stops. Otherwise on_error receives it and the entry (or
        the unreadable subtree) is skipped.
        """
        try:
            root_path = Path(os.path.abspath(root))
            root_stat = os.stat(root_path)
        except FileNotFoundError as e:
            self._handle(TraversalError(f"Root does not exist: {root}", root), on_error, e)
            return
        except OSError as e:
            self._handle(MetadataError(f"Cannot stat root {root}: {e}", root), on_error, e)
            return

        if stat.S_ISREG(root_stat.st_mode):
            self._emit_file(root_path, root_stat, on_file, on_error)
            return
        if not stat.S_ISDIR(root_stat.st_mode):
            self._handle(TraversalError(f"Root is neither a directory nor a regular file: {root_path}", root_path),
                         on_error)
            return

        if self.include_root:
            self._emit_directory(root_path, on_directory, on_error)

        stack = [root_path]
        while stack:
            if self.cancel.is_set():
                return
            current = stack.pop()

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                self._handle(TraversalError(f"Cannot list {current}: {e}", current), on_error, e)
                continue

            subdirs = []
            for entry in entries:
                if self.cancel.is_set():
                    return
                path = Path(entry.path)

                linked = False
                try:
                    entry_stat = entry.stat(follow_symlinks=False)
                    if stat.S_ISLNK(entry_stat.st_mode):
                        # Classified by target, never descended into
                        linked = True
                        entry_stat = os.stat(path)
                except OSError as e:
                    self._handle(MetadataError(f"Cannot stat {path}: {e}", path), on_error, e)
                    continue

                if stat.S_ISDIR(entry_stat.st_mode):
                    if self._emit_directory(path, on_directory, on_error):
                        if linked:
                            logging.debug(f"Not descending into linked directory: {path}")
                        else:
                            subdirs.append(path)
                elif stat.S_ISREG(entry_stat.st_mode):
                    self._emit_file(path, entry_stat, on_file, on_error)
                else:
                    self._handle(TraversalError(f"Not a regular file or directory: {path}", path), on_error)

            # Push dirs reversed so they are processed in listing order
            for d in reversed(subdirs):
                stack.append(d)

    def _emit_directory(self, path: Path, on_directory: DirectoryCallback,
                        on_error: Optional[ErrorCallback]) -> bool:
        try:
            times = self.probe.probe(path)
        except MetadataError as e:
            self._handle(e, on_error)
            return False

        on_directory(DirectoryRecord(
            path=path,
            name=path.name,
            accessed=times.accessed,
            modified=times.modified,
            changed=times.changed,
            birth=times.birth,
        ))
        return True

    def _emit_file(self, path: Path, st: os.stat_result, on_file: FileCallback,
                   on_error: Optional[ErrorCallback]):
        try:
            times = self.probe.probe(path)
        except MetadataError as e:
            self._handle(e, on_error)
            return

        on_file(FileRecord(
            host=self.host,
            path=path,
            name=path.name,
            ext=extension(path.name),
            size=st.st_size,
            accessed=times.accessed,
            modified=times.modified,
            changed=times.changed,
            birth=times.birth,
        ))

    def _handle(self, error: DupeFinderError, on_error: Optional[ErrorCallback],
                cause: Optional[BaseException] = None):
        if cause is not None:
            error.__cause__ = cause
        if on_error is None:
            raise error
        on_error(error)
