import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..exceptions import MetadataError
from ..models import Timestamps


def _change_time(st: os.stat_result, platform: str) -> Optional[float]:
    # On Windows st_ctime is the creation time, there is no inode change time.
    if platform.startswith("win"):
        return None
    return st.st_ctime


def _birth_time(st: os.stat_result, platform: str) -> Optional[float]:
    birth = getattr(st, "st_birthtime", None)
    if birth is not None and birth > 0:
        return birth
    if platform.startswith("win"):
        return st.st_ctime
    return None


def timestamps_from_stat(st: os.stat_result, platform: str = sys.platform) -> Timestamps:
    """
    Builds the four timestamps from a stat result.

    Fallback policy (same for files and directories):
      - no change time -> modify time
      - no birth time  -> modify time
    """
    modified = datetime.fromtimestamp(st.st_mtime)

    ctime = _change_time(st, platform)
    btime = _birth_time(st, platform)

    return Timestamps(
        accessed=datetime.fromtimestamp(st.st_atime),
        modified=modified,
        changed=datetime.fromtimestamp(ctime) if ctime is not None else modified,
        birth=datetime.fromtimestamp(btime) if btime is not None else modified,
    )


class MetadataProbe:
    """Reads timestamps for a path, following symlinks like a plain stat."""

    def probe(self, path: Union[str, Path]) -> Timestamps:
        try:
            st = os.stat(path)
        except OSError as e:
            raise MetadataError(f"Cannot stat {path}: {e}", path) from e
        return timestamps_from_stat(st)
