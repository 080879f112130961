"""Project entry and scan result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ProjectEntry:
    """A directory recognised as a Flutter and/or Kotlin (Gradle) project."""

    name: str
    path: Path
    is_flutter_project: bool = False
    is_kotlin_project: bool = False

    @property
    def kinds(self) -> list[str]:
        """Project kinds for display, e.g. ['flutter', 'kotlin']."""
        kinds = []
        if self.is_flutter_project:
            kinds.append("flutter")
        if self.is_kotlin_project:
            kinds.append("kotlin")
        return kinds


@dataclass(slots=True)
class ProjectScanResult:
    """Result of scanning a directory for projects."""

    root: Path
    projects: list[ProjectEntry] = field(default_factory=list)
    error: str = ""
    error_kind: str | None = None

    @property
    def summary(self) -> str:
        return f"Found {len(self.projects)} project(s) in {self.root}"
