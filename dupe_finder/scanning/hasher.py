import hashlib
from pathlib import Path
from typing import Union

from .. import config
from ..exceptions import HashIOError


class FileHasher:
    def __init__(self, chunk_size: int = config.HASH_CHUNK_SIZE):
        self.chunk_size = chunk_size

    def fingerprint(self, path: Union[str, Path]) -> str:
        """
        Computes the SHA-512 fingerprint of the whole file.

        The file is streamed in fixed-size chunks, never loaded at once.
        Any open/read failure (including a file removed or truncated after
        discovery) surfaces as HashIOError.
        """
        try:
            return self._full_sha512(Path(path))
        except OSError as e:
            raise HashIOError(f"Cannot hash {path}: {e}", path) from e

    def _full_sha512(self, path: Path) -> str:
        """Reads entire file. High I/O cost."""
        h = hashlib.sha512()
        with open(path, 'rb') as f:
            while chunk := f.read(self.chunk_size):
                h.update(chunk)
        return h.hexdigest()
