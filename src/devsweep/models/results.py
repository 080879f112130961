"""Delete, clean and process result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from devsweep.models.project_entry import ProjectEntry

# Failure kinds
NOT_FOUND = "not_found"
ENUMERATION_FAILED = "enumeration_failed"
DELETION_FAILED = "deletion_failed"
SPAWN_FAILED = "spawn_failed"
TIMED_OUT = "timed_out"


@dataclass(frozen=True, slots=True)
class DeleteResult:
    """Outcome of a single delete attempt.

    ``failure`` is None on success, otherwise NOT_FOUND or DELETION_FAILED
    with the underlying OS error text in ``reason``.
    """

    path: Path
    label: str = ""
    failure: str | None = None
    reason: str = ""
    size_bytes: int = 0

    @property
    def ok(self) -> bool:
        return self.failure is None

    def describe(self) -> str:
        """Render the attempt as one human-readable log line."""
        subject = f"{self.label} at {self.path}" if self.label else str(self.path)
        if self.failure is None:
            return f"Deleted {subject}"
        if self.failure == NOT_FOUND:
            return f"Path not found for {subject}" if self.label else f"Path not found: {subject}"
        return f"Failed to delete {subject}: {self.reason}"


@dataclass(slots=True)
class CleanResult:
    """Result of a batch of delete attempts.

    Every target is attempted independently; ``error`` holds a message
    for problems that prevented the batch from starting at all.
    """

    target: str
    attempts: list[DeleteResult] = field(default_factory=list)
    error: str = ""

    @property
    def deleted(self) -> list[Path]:
        return [a.path for a in self.attempts if a.ok]

    @property
    def errors(self) -> list[str]:
        errors = [a.describe() for a in self.attempts if a.failure == DELETION_FAILED]
        if self.error:
            errors.insert(0, self.error)
        return errors

    @property
    def freed_bytes(self) -> int:
        return sum(a.size_bytes for a in self.attempts if a.ok)

    @property
    def log_lines(self) -> list[str]:
        lines = [self.error] if self.error else []
        lines.extend(a.describe() for a in self.attempts)
        return lines


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Outcome of running an external tool.

    A tool that ran and printed an error still has ``failure`` None; only
    the captured ``output`` tells. SPAWN_FAILED means it never started.
    """

    executable: Path
    working_directory: Path
    output: str = ""
    returncode: int | None = None
    failure: str | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(slots=True)
class ProjectCleanResult:
    """Combined outcome of cleaning one project."""

    project: ProjectEntry
    flutter: ProcessResult | None = None
    kotlin: CleanResult | None = None
    messages: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        if self.messages:
            return False
        if self.flutter is not None and not self.flutter.ok:
            return False
        return self.kotlin is None or not self.kotlin.errors

    @property
    def log_text(self) -> str:
        name = self.project.name
        parts: list[str] = list(self.messages)
        if self.flutter is not None:
            if self.flutter.ok:
                parts.append(f"Flutter clean output for {name}:\n{self.flutter.output}")
            else:
                parts.append(f"Error running flutter clean on {name}: {self.flutter.reason}")
        if self.kotlin is not None:
            lines = "\n".join(self.kotlin.log_lines)
            parts.append(f"Kotlin cache cleanup for {name}:\n{lines}")
        return "\n".join(part.rstrip("\n") for part in parts)
