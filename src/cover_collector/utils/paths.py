from __future__ import annotations

import re
from pathlib import Path

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]")


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def is_safe_filename(name: str) -> bool:
    """True if ``name`` can be used verbatim as a single path component."""
    if not name or name in {".", ".."}:
        return False
    return _UNSAFE_NAME_RE.search(name) is None
