"""Shared utility functions for the cover collector."""

from cover_collector.utils.hash import sha256_bytes, sha256_file
from cover_collector.utils.io import temp_path_for, write_bytes_atomic
from cover_collector.utils.paths import ensure_dir, is_safe_filename

__all__ = [
    "sha256_bytes",
    "sha256_file",
    "temp_path_for",
    "write_bytes_atomic",
    "ensure_dir",
    "is_safe_filename",
]
