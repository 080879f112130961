"""Deletion of caches and project build artifacts."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable

from devsweep.core.resolver import resolve_executable_path
from devsweep.models.cache_entry import CacheEntry
from devsweep.models.project_entry import ProjectEntry
from devsweep.models.results import (
    DELETION_FAILED,
    NOT_FOUND,
    SPAWN_FAILED,
    TIMED_OUT,
    CleanResult,
    DeleteResult,
    ProcessResult,
    ProjectCleanResult,
)
from devsweep.utils import compute_directory_size

log = logging.getLogger(__name__)

KOTLIN_BUILD_DIR = "build"

Resolver = Callable[[str], Path | None]


def delete_path(path: Path | str, label: str = "", size_bytes: int = 0) -> DeleteResult:
    """Remove *path* and everything below it.

    Never raises: a missing path yields NOT_FOUND and an OS error yields
    DELETION_FAILED with the error text, so retrying a finished delete
    simply reports NOT_FOUND again.
    """
    path = Path(path)
    if not os.path.lexists(path):
        log.info("Path not found: %s", path)
        return DeleteResult(path=path, label=label, failure=NOT_FOUND)

    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as e:
        log.warning("Failed to delete %s: %s", path, e)
        return DeleteResult(path=path, label=label, failure=DELETION_FAILED, reason=str(e))

    log.info("Deleted %s", path)
    return DeleteResult(path=path, label=label, size_bytes=size_bytes)


def clean_cache(entry: CacheEntry) -> DeleteResult:
    """Delete one cache entry, crediting its last measured size."""
    return delete_path(entry.path, label=entry.name, size_bytes=entry.size_bytes or 0)


def clean_caches(entries: list[CacheEntry]) -> CleanResult:
    """Delete the selected cache entries.

    Every selected entry is attempted even when an earlier one fails.
    """
    return CleanResult(target="caches", attempts=[clean_cache(e) for e in entries if e.selected])


def run_external_clean(
    executable_path: Path | str,
    working_directory: Path | str,
    timeout: float | None = None,
) -> ProcessResult:
    """Run ``<executable> clean`` inside *working_directory*.

    Stdout and stderr are captured together.  The exit status is recorded
    but not interpreted; a failure is only reported when the process could
    not be started (SPAWN_FAILED) or exceeded *timeout* (TIMED_OUT).
    """
    executable = Path(executable_path)
    cwd = Path(working_directory)
    try:
        proc = subprocess.run(
            [str(executable), "clean"],
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        log.warning("%s clean timed out after %ss in %s", executable.name, timeout, cwd)
        output = e.output or ""
        if isinstance(output, bytes):
            output = output.decode(errors="replace")
        return ProcessResult(
            executable=executable,
            working_directory=cwd,
            output=output,
            failure=TIMED_OUT,
            reason=f"timed out after {timeout} seconds",
        )
    except OSError as e:
        log.warning("Could not run %s in %s: %s", executable, cwd, e)
        return ProcessResult(
            executable=executable,
            working_directory=cwd,
            failure=SPAWN_FAILED,
            reason=str(e),
        )

    log.debug("%s clean in %s exited with %d", executable.name, cwd, proc.returncode)
    return ProcessResult(
        executable=executable,
        working_directory=cwd,
        output=proc.stdout or "",
        returncode=proc.returncode,
    )


def clean_kotlin_build_artifacts(project_path: Path | str, name: str | None = None) -> CleanResult:
    """Delete every directory named ``build`` anywhere under *project_path*.

    Deleted directories are not descended into; one that could not be
    deleted is still searched for nested ``build`` directories.  Each
    attempt is recorded whether it succeeds or fails, and failures never
    stop the walk.
    """
    root = Path(project_path)
    result = CleanResult(target=name or root.name)
    if not root.is_dir():
        result.error = f"Project directory not found: {root}"
        log.info("%s", result.error)
        return result

    for dirpath, dirnames, _filenames in os.walk(root):
        if KOTLIN_BUILD_DIR not in dirnames:
            continue
        build_dir = Path(dirpath) / KOTLIN_BUILD_DIR
        size = 0 if build_dir.is_symlink() else compute_directory_size(build_dir) or 0
        attempt = delete_path(build_dir, label="build folder", size_bytes=size)
        result.attempts.append(attempt)
        if attempt.failure != DELETION_FAILED:
            dirnames.remove(KOTLIN_BUILD_DIR)

    log.info("Kotlin cleanup for %s: %d build folder(s) processed", result.target, len(result.attempts))
    return result


def clean_project(
    project: ProjectEntry,
    flutter_path: Path | str | None = None,
    *,
    flutter: bool = True,
    kotlin: bool = True,
    timeout: float | None = None,
    resolver: Resolver = resolve_executable_path,
) -> ProjectCleanResult:
    """Run every applicable cleanup for *project*.

    Flutter projects get ``flutter clean``; the executable is looked up via
    the login shell unless *flutter_path* is given.  Kotlin projects get
    their ``build`` directories removed.
    """
    result = ProjectCleanResult(project=project)

    if flutter and project.is_flutter_project:
        executable = Path(flutter_path) if flutter_path else resolver("flutter")
        if executable is None:
            result.messages.append("Error: Flutter executable not found in PATH.")
        else:
            result.flutter = run_external_clean(executable, project.path, timeout=timeout)

    if kotlin and project.is_kotlin_project:
        result.kotlin = clean_kotlin_build_artifacts(project.path, name=project.name)

    return result
