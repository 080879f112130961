"""Cache entry dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A well-known developer cache location.

    ``size_bytes`` is ``None`` until measured, and stays ``None`` when the
    directory exists but could not be enumerated.  A cache whose path does
    not exist is measured as ``0``.
    """

    id: str
    name: str
    path: Path
    selected: bool = True
    size_bytes: int | None = None
