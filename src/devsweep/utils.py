"""Shared utility functions."""

from __future__ import annotations

import logging
import os
from pathlib import Path

log = logging.getLogger(__name__)


def library_caches_home() -> Path:
    """Return ~/Library/Caches."""
    return Path.home() / "Library" / "Caches"


def application_support_home() -> Path:
    """Return ~/Library/Application Support."""
    return Path.home() / "Library" / "Application Support"


def gradle_user_home() -> Path:
    """Return GRADLE_USER_HOME, defaulting to ~/.gradle."""
    return Path(os.environ.get("GRADLE_USER_HOME", Path.home() / ".gradle"))


def pub_cache_home() -> Path:
    """Return PUB_CACHE, defaulting to ~/.pub-cache."""
    return Path(os.environ.get("PUB_CACHE", Path.home() / ".pub-cache"))


def compute_directory_size(path: Path | str) -> int | None:
    """Sum the sizes of all regular files under *path*.

    Symlinks are never followed and, like directories and special files,
    contribute nothing.  Entries that cannot be stat'ed and nested
    directories that cannot be listed are skipped.

    Returns:
        Total bytes, or None if *path* itself cannot be enumerated
        (missing, not a directory, permission denied).
    """
    try:
        root = os.scandir(path)
    except OSError as e:
        log.debug("Cannot enumerate %s: %s", path, e)
        return None

    total = 0
    stack: list[str] = []
    with root as it:
        total += _sum_entries(it, stack)
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                total += _sum_entries(it, stack)
        except OSError:
            log.debug("Skipping unreadable directory: %s", current)
    return total


def _sum_entries(it, stack: list[str]) -> int:
    total = 0
    for entry in it:
        try:
            if entry.is_file(follow_symlinks=False):
                total += entry.stat(follow_symlinks=False).st_size
            elif entry.is_dir(follow_symlinks=False):
                stack.append(entry.path)
        except OSError:
            pass
    return total


def bytes_to_human(size_bytes: int) -> str:
    """Convert byte count to a human-readable string."""
    if size_bytes < 0:
        return f"-{bytes_to_human(-size_bytes)}"
    if size_bytes == 0:
        return "0 B"

    units = ("B", "KB", "MB", "GB", "TB")
    value = float(size_bytes)
    for unit in units[:-1]:
        if abs(value) < 1024:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} {units[-1]}"


def format_elapsed(seconds: float) -> str:
    """Format an elapsed time as a human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    secs = seconds - minutes * 60
    return f"{minutes}m {secs:.0f}s"
