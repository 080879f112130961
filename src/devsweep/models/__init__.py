"""Devsweep data models."""

from devsweep.models.cache_entry import CacheEntry
from devsweep.models.project_entry import ProjectEntry, ProjectScanResult
from devsweep.models.results import (
    DELETION_FAILED,
    ENUMERATION_FAILED,
    NOT_FOUND,
    SPAWN_FAILED,
    TIMED_OUT,
    CleanResult,
    DeleteResult,
    ProcessResult,
    ProjectCleanResult,
)

__all__ = [
    "CacheEntry",
    "CleanResult",
    "DELETION_FAILED",
    "DeleteResult",
    "ENUMERATION_FAILED",
    "NOT_FOUND",
    "ProcessResult",
    "ProjectCleanResult",
    "ProjectEntry",
    "ProjectScanResult",
    "SPAWN_FAILED",
    "TIMED_OUT",
]
