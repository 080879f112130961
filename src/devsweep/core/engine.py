"""Measuring and cleaning orchestration engine."""

from __future__ import annotations

import dataclasses
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable

from devsweep.core.cleaner import clean_cache, clean_project
from devsweep.core.discovery import list_known_caches, measure_cache, scan_projects
from devsweep.core.resolver import resolve_executable_path
from devsweep.models.cache_entry import CacheEntry
from devsweep.models.project_entry import ProjectEntry, ProjectScanResult
from devsweep.models.results import CleanResult, DeleteResult, DELETION_FAILED, ProjectCleanResult

log = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str], None]  # (entry_id, status_message)
CacheCallback = Callable[[CacheEntry], None]
ProjectCallback = Callable[[ProjectCleanResult], None]


class SweepEngine:
    """Runs measuring and cleaning on behalf of a caller.

    The engine owns the current cache snapshot and replaces it as a whole
    once a measurement finishes.  It never issues two operations on the
    same path concurrently, but does not guard against a caller doing so.
    """

    def __init__(self, caches: list[CacheEntry] | None = None) -> None:
        self._caches: list[CacheEntry] = list(caches) if caches is not None else list_known_caches()
        self._flutter_path: Path | None = None

    @property
    def caches(self) -> list[CacheEntry]:
        """Current cache snapshot."""
        return list(self._caches)

    def get_cache(self, cache_id: str) -> CacheEntry | None:
        """Get a cache entry by its ID."""
        return next((c for c in self._caches if c.id == cache_id), None)

    def select(self, cache_ids: list[str] | None) -> list[CacheEntry]:
        """Mark only *cache_ids* as selected (all when None) and return the snapshot."""
        if cache_ids is not None:
            for cid in cache_ids:
                if self.get_cache(cid) is None:
                    log.warning("Cache '%s' not found, skipping", cid)
            wanted = set(cache_ids)
            self._caches = [_with_selection(c, c.id in wanted) for c in self._caches]
        return self.caches

    def measure(
        self,
        on_progress: ProgressCallback | None = None,
        on_result: CacheCallback | None = None,
    ) -> list[CacheEntry]:
        """Compute the size of every cache entry.

        Entries are measured on a small thread pool (4 workers) so several
        directory walks can overlap; a single entry or a single-core machine
        measures sequentially.  Order of the returned list always matches
        the snapshot.
        """
        entries = self._caches
        if not entries:
            return []

        def _measure(entry: CacheEntry) -> CacheEntry:
            _notify(on_progress, entry.id, "measuring")
            try:
                measured = measure_cache(entry)
            except Exception:
                log.exception("Measuring cache '%s' failed", entry.id)
                _notify(on_progress, entry.id, "error")
                return entry
            _notify(on_result, measured)
            _notify(on_progress, entry.id, "done" if measured.size_bytes is not None else "error")
            return measured

        if (os.cpu_count() or 1) > 1 and len(entries) > 1:
            max_workers = min(4, len(entries))
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                measured = list(executor.map(_measure, entries))
        else:
            measured = [_measure(entry) for entry in entries]

        self._caches = measured
        return self.caches

    def clean_caches(self, on_progress: ProgressCallback | None = None) -> CleanResult:
        """Delete every selected cache entry.

        Each entry is attempted even when an earlier one fails.  Removed
        entries are re-listed as 0 bytes in the snapshot.
        """
        result = CleanResult(target="caches")
        for entry in self._caches:
            if not entry.selected:
                continue
            _notify(on_progress, entry.id, "cleaning")
            try:
                attempt = clean_cache(entry)
            except Exception as e:
                log.exception("Cleaning cache '%s' failed", entry.id)
                attempt = DeleteResult(path=entry.path, label=entry.name, failure=DELETION_FAILED, reason=str(e))
            result.attempts.append(attempt)
            _notify(on_progress, entry.id, "done" if attempt.ok else "error")

        deleted = set(result.deleted)
        self._caches = [_with_size(c, 0) if c.path in deleted else c for c in self._caches]
        return result

    def scan_projects(self, root: Path | str) -> ProjectScanResult:
        """Scan *root* for Flutter and Kotlin projects."""
        return scan_projects(root)

    def resolve_flutter(self) -> Path | None:
        """Resolve the flutter executable once per engine."""
        if self._flutter_path is None:
            self._flutter_path = resolve_executable_path("flutter")
        return self._flutter_path

    def clean_projects(
        self,
        projects: list[ProjectEntry],
        flutter_path: Path | str | None = None,
        *,
        flutter: bool = True,
        kotlin: bool = True,
        timeout: float | None = None,
        on_progress: ProgressCallback | None = None,
        on_result: ProjectCallback | None = None,
    ) -> list[ProjectCleanResult]:
        """Clean each project in turn, continuing past failures."""
        results: list[ProjectCleanResult] = []
        for project in projects:
            key = str(project.path)
            _notify(on_progress, key, "cleaning")
            try:
                result = clean_project(
                    project,
                    flutter_path,
                    flutter=flutter,
                    kotlin=kotlin,
                    timeout=timeout,
                    resolver=lambda _name: self.resolve_flutter(),
                )
            except Exception:
                log.exception("Cleaning project '%s' failed", project.name)
                result = ProjectCleanResult(project=project, messages=["Project crashed during cleaning"])
            results.append(result)
            _notify(on_result, result)
            _notify(on_progress, key, "done" if result.ok else "error")
        return results


def _notify(callback: Callable[..., None] | None, *args) -> None:
    """Invoke a caller callback; a failing callback never aborts the operation."""
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        log.exception("Callback %r failed", callback)


def _with_selection(entry: CacheEntry, selected: bool) -> CacheEntry:
    return dataclasses.replace(entry, selected=selected)


def _with_size(entry: CacheEntry, size: int) -> CacheEntry:
    return dataclasses.replace(entry, size_bytes=size)
