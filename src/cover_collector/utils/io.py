from __future__ import annotations

import os
from pathlib import Path

from cover_collector.utils.paths import ensure_dir

TMP_SUFFIX = ".tmp"


def temp_path_for(path: Path) -> Path:
    return path.with_name(path.name + TMP_SUFFIX)


def write_bytes_atomic(path: Path, data: bytes) -> None:
    """Write bytes to ``path`` via a sibling temp file and rename.

    The final path either does not exist or holds the complete content. The
    temp file is removed if the write fails.
    """
    ensure_dir(path.parent)
    tmp_path = temp_path_for(path)
    try:
        with tmp_path.open("wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
