"""Discovery of well-known caches and Flutter/Kotlin projects."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

from devsweep.core.resolver import find_versioned_directory
from devsweep.models.cache_entry import CacheEntry
from devsweep.models.project_entry import ProjectEntry, ProjectScanResult
from devsweep.models.results import ENUMERATION_FAILED
from devsweep.utils import (
    application_support_home,
    compute_directory_size,
    gradle_user_home,
    library_caches_home,
    pub_cache_home,
)

log = logging.getLogger(__name__)

_ANDROID_STUDIO_PREFIX = "AndroidStudio"

FLUTTER_MARKERS = ("pubspec.yaml",)
KOTLIN_MARKERS = ("build.gradle", "settings.gradle")


def _android_studio_cache_path() -> Path:
    google = library_caches_home() / "Google"
    found = find_versioned_directory(google, _ANDROID_STUDIO_PREFIX)
    return found or library_caches_home() / _ANDROID_STUDIO_PREFIX


def _android_studio_support_path() -> Path:
    google = application_support_home() / "Google"
    found = find_versioned_directory(google, _ANDROID_STUDIO_PREFIX)
    return found or google / _ANDROID_STUDIO_PREFIX


def list_known_caches() -> list[CacheEntry]:
    """Return the well-known developer caches in display order.

    The Android Studio directories are versioned (``AndroidStudio2024.2``),
    so the newest one is picked by name, falling back to an unversioned
    path when none exists.
    """
    return [
        CacheEntry("android_studio_caches", "Android Studio Caches", _android_studio_cache_path()),
        CacheEntry("android_studio_support", "Android Studio Support", _android_studio_support_path()),
        CacheEntry("gradle_caches", "Gradle Caches", gradle_user_home() / "caches"),
        CacheEntry("flutter_pub_cache", "Flutter Pub Cache", pub_cache_home()),
    ]


def measure_cache(entry: CacheEntry) -> CacheEntry:
    """Return a copy of *entry* with ``size_bytes`` filled in.

    A missing cache is 0 bytes; None is kept for caches that exist but
    could not be enumerated.
    """
    if not entry.path.exists():
        return dataclasses.replace(entry, size_bytes=0)
    size = compute_directory_size(entry.path)
    if size is None:
        log.warning("Could not determine size of %s: %s", entry.name, entry.path)
    return dataclasses.replace(entry, size_bytes=size)


def measure_caches(entries: list[CacheEntry]) -> list[CacheEntry]:
    """Measure every entry sequentially, preserving order."""
    return [measure_cache(entry) for entry in entries]


def detect_project_markers(directory: Path) -> tuple[bool, bool]:
    """Return (is_flutter, is_kotlin) based on marker files in *directory*."""
    is_flutter = any((directory / marker).exists() for marker in FLUTTER_MARKERS)
    is_kotlin = any((directory / marker).exists() for marker in KOTLIN_MARKERS)
    return is_flutter, is_kotlin


def _project_entry(directory: Path) -> ProjectEntry | None:
    is_flutter, is_kotlin = detect_project_markers(directory)
    if not (is_flutter or is_kotlin):
        return None
    return ProjectEntry(
        name=directory.name,
        path=directory,
        is_flutter_project=is_flutter,
        is_kotlin_project=is_kotlin,
    )


def scan_projects(root: Path | str) -> ProjectScanResult:
    """Find projects in *root* itself and its immediate, non-hidden subdirectories.

    Subdirectories are reported in name order after the root.  Deeper
    levels are never searched.
    """
    root = Path(root)
    result = ProjectScanResult(root=root)

    if root.is_dir():
        project = _project_entry(root)
        if project is not None:
            result.projects.append(project)

    try:
        children = sorted(root.iterdir())
    except OSError as e:
        log.warning("Error scanning directory %s: %s", root, e)
        result.error = f"Error scanning directory: {e}"
        result.error_kind = ENUMERATION_FAILED
        return result

    for child in children:
        if child.name.startswith("."):
            continue
        try:
            if not child.is_dir():
                continue
        except OSError:
            log.debug("Cannot access: %s", child)
            continue
        project = _project_entry(child)
        if project is not None:
            result.projects.append(project)

    log.info("%s", result.summary)
    return result


def scan_for_projects(root: Path | str) -> list[ProjectEntry]:
    """Return the projects found by ``scan_projects``."""
    return scan_projects(root).projects
