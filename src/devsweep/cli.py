"""CLI interface for Devsweep."""

from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path

import click

from devsweep.core.engine import SweepEngine
from devsweep.core.resolver import default_shell, resolve_executable_path
from devsweep.models.cache_entry import CacheEntry
from devsweep.models.project_entry import ProjectEntry
from devsweep.models.results import DeleteResult, ProjectCleanResult
from devsweep.utils import bytes_to_human, format_elapsed

CACHE_WARNING = (
    "Cleaning caches will mean that the next time you build your project, it will take "
    "longer as caches need to be rebuilt from scratch."
)
PROJECT_WARNING = (
    "Cleaning project caches will result in slower subsequent builds because necessary "
    "files will have to be re-downloaded or rebuilt."
)


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _size_label(entry: CacheEntry) -> str:
    if entry.size_bytes is None:
        return "Unknown"
    return bytes_to_human(entry.size_bytes)


def _cache_to_dict(entry: CacheEntry) -> dict:
    return {
        "id": entry.id,
        "name": entry.name,
        "path": str(entry.path),
        "selected": entry.selected,
        "size_bytes": entry.size_bytes,
    }


def _attempt_to_dict(attempt: DeleteResult) -> dict:
    return {
        "path": str(attempt.path),
        "label": attempt.label,
        "ok": attempt.ok,
        "failure": attempt.failure,
        "reason": attempt.reason,
        "size_bytes": attempt.size_bytes,
    }


def _project_to_dict(project: ProjectEntry) -> dict:
    return {
        "name": project.name,
        "path": str(project.path),
        "is_flutter_project": project.is_flutter_project,
        "is_kotlin_project": project.is_kotlin_project,
    }


def _project_result_to_dict(result: ProjectCleanResult) -> dict:
    data: dict = {"project": _project_to_dict(result.project), "ok": result.ok, "messages": result.messages}
    if result.flutter is not None:
        data["flutter"] = {
            "executable": str(result.flutter.executable),
            "output": result.flutter.output,
            "returncode": result.flutter.returncode,
            "failure": result.flutter.failure,
            "reason": result.flutter.reason,
        }
    if result.kotlin is not None:
        data["kotlin"] = {
            "freed_bytes": result.kotlin.freed_bytes,
            "error": result.kotlin.error,
            "attempts": [_attempt_to_dict(a) for a in result.kotlin.attempts],
        }
    return data


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """Devsweep: clean Android Studio, Gradle and Flutter caches."""
    _setup_logging(verbose)


# ── caches ───────────────────────────────────────────────────────────────

@main.command()
@click.option("--no-sizes", is_flag=True, help="Skip measuring cache sizes")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def caches(no_sizes: bool, as_json: bool) -> None:
    """List the known developer caches and their sizes."""
    engine = SweepEngine()
    entries = engine.caches if no_sizes else engine.measure()

    if as_json:
        click.echo(json.dumps([_cache_to_dict(e) for e in entries], indent=2))
        return

    click.echo()
    for entry in entries:
        size = "" if no_sizes else f" — {click.style(_size_label(entry), fg='green', bold=True)}"
        click.echo(f"  {click.style(entry.id, fg='cyan', bold=True):35s}  {entry.name}{size}")
        click.echo(f"  {'':24s}{click.style(str(entry.path), fg='bright_black')}")

    if not no_sizes:
        total = sum(e.size_bytes or 0 for e in entries)
        click.echo(f"\nTotal: {click.style(bytes_to_human(total), fg='green', bold=True)}\n")


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("cache_ids", nargs=-1)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be cleaned without doing it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def clean(cache_ids: tuple[str, ...], yes: bool, dry_run: bool, as_json: bool) -> None:
    """Delete the selected caches (all known caches by default)."""
    engine = SweepEngine()
    unknown = [cid for cid in cache_ids if engine.get_cache(cid) is None]
    if unknown:
        click.echo(f"Unknown cache id(s): {', '.join(unknown)}", err=True)
        sys.exit(1)

    engine.select(list(cache_ids) if cache_ids else None)
    selected = [e for e in engine.measure() if e.selected]

    if not as_json:
        click.echo()
        for entry in selected:
            click.echo(
                f"  {click.style('•', fg='cyan')} {entry.name:30s} — "
                f"{click.style(_size_label(entry), fg='green', bold=True)}  {entry.path}"
            )
        total = sum(e.size_bytes or 0 for e in selected)
        click.echo(f"\nTotal: {click.style(bytes_to_human(total), fg='green', bold=True)}\n")

    if dry_run:
        if as_json:
            data = [_cache_to_dict(e) for e in selected]
            click.echo(json.dumps({"status": "dry_run", "results": data}, indent=2))
        else:
            click.echo("(dry run — no files were deleted)")
        return

    if not yes and not as_json:
        click.echo(click.style(f"Warning: {CACHE_WARNING}", fg="red"))
        if not click.confirm("Do you wish to continue?", default=False):
            click.echo("Aborted.")
            return

    start = time.monotonic()
    result = engine.clean_caches()

    if as_json:
        data = {
            "status": "cleaned",
            "freed_bytes": result.freed_bytes,
            "results": [_attempt_to_dict(a) for a in result.attempts],
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo()
    for attempt in result.attempts:
        mark = click.style("✓", fg="green") if attempt.ok else click.style("!", fg="yellow")
        click.echo(f"  {mark} {attempt.describe()}")

    click.echo(
        f"\nTotal freed: {click.style(bytes_to_human(result.freed_bytes), fg='green', bold=True)} "
        f"in {format_elapsed(time.monotonic() - start)}\n"
    )


# ── projects ─────────────────────────────────────────────────────────────

@main.command()
@click.argument("directory", type=click.Path(path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def projects(directory: Path, as_json: bool) -> None:
    """Find Flutter and Kotlin projects in DIRECTORY and its subdirectories."""
    engine = SweepEngine(caches=[])
    scan = engine.scan_projects(directory)

    if as_json:
        data = {
            "root": str(scan.root),
            "error": scan.error,
            "error_kind": scan.error_kind,
            "projects": [_project_to_dict(p) for p in scan.projects],
        }
        click.echo(json.dumps(data, indent=2))
        return

    if scan.error:
        click.echo(click.style(scan.error, fg="red"), err=True)

    click.echo()
    for project in scan.projects:
        kinds = ", ".join(project.kinds)
        click.echo(f"  {click.style(project.name, fg='cyan', bold=True):35s}  [{kinds}]")
        click.echo(f"  {'':24s}{click.style(str(project.path), fg='bright_black')}")
    click.echo(f"\n{scan.summary}\n")


# ── clean-project ────────────────────────────────────────────────────────

@main.command("clean-project")
@click.argument("directory", type=click.Path(path_type=Path))
@click.option(
    "--only",
    type=click.Choice(["flutter", "kotlin"]),
    default=None,
    help="Run only the Flutter or only the Kotlin cleanup",
)
@click.option(
    "--flutter-path",
    type=click.Path(path_type=Path),
    default=None,
    help="Flutter executable (default: looked up through the login shell)",
)
@click.option("--timeout", type=float, default=None, help="Seconds to wait for 'flutter clean'")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def clean_project_cmd(
    directory: Path,
    only: str | None,
    flutter_path: Path | None,
    timeout: float | None,
    yes: bool,
    as_json: bool,
) -> None:
    """Clean build artifacts of every project found in DIRECTORY."""
    engine = SweepEngine(caches=[])
    scan = engine.scan_projects(directory)
    if scan.error and not as_json:
        click.echo(click.style(scan.error, fg="red"), err=True)

    if not scan.projects:
        if as_json:
            click.echo(json.dumps({"status": "nothing_to_clean", "error": scan.error, "results": []}))
        else:
            click.echo(scan.summary)
        return

    if not yes and not as_json:
        click.echo(f"\n{scan.summary}:")
        for project in scan.projects:
            click.echo(f"  {click.style(project.name, fg='cyan', bold=True)} [{', '.join(project.kinds)}]")
        click.echo(click.style(f"\nWarning: {PROJECT_WARNING}", fg="red"))
        if not click.confirm("Do you wish to continue?", default=False):
            click.echo("Aborted.")
            return

    results = engine.clean_projects(
        scan.projects,
        flutter_path,
        flutter=only != "kotlin",
        kotlin=only != "flutter",
        timeout=timeout,
    )

    if as_json:
        data = {"status": "cleaned", "results": [_project_result_to_dict(r) for r in results]}
        click.echo(json.dumps(data, indent=2))
        return

    for result in results:
        click.echo()
        click.echo(result.log_text)

    freed = sum(r.kotlin.freed_bytes for r in results if r.kotlin is not None)
    failed = sum(1 for r in results if not r.ok)
    summary = f"\nCleaned {len(results)} project(s), freed {click.style(bytes_to_human(freed), fg='green', bold=True)}"
    if failed:
        summary += click.style(f", {failed} with errors", fg="yellow")
    click.echo(summary + "\n")


# ── which ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("tool")
@click.option("--shell", default=None, help="Shell to run the lookup in (default: $SHELL)")
def which(tool: str, shell: str | None) -> None:
    """Resolve TOOL through the user's interactive login shell."""
    path = resolve_executable_path(tool, shell=shell)
    if path is None:
        click.echo(f"{tool} not found via {shell or default_shell()}", err=True)
        sys.exit(1)
    click.echo(str(path))
