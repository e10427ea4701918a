"""Utility functions."""

import re
from pathlib import Path

# Characters that are not allowed in file names on at least one platform
_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def ensure_dir(path: str) -> None:
    """Ensure directory exists."""
    Path(path).mkdir(parents=True, exist_ok=True)


def safe_filename(name: str, fallback: str) -> str:
    """Turn a deck name into something usable as a file name stem."""
    cleaned = _UNSAFE_FILENAME_CHARS.sub('_', name or '').strip().strip('.')
    return cleaned or fallback
