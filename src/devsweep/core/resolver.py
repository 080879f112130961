"""Locate versioned tool directories and executables."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path

log = logging.getLogger(__name__)

_DEFAULT_SHELL = "/bin/zsh"

# Timeout for the login shell lookup (seconds).
_SHELL_TIMEOUT = 30


def find_versioned_directory(base_path: Path | str, prefix: str) -> Path | None:
    """Return the child of *base_path* with the greatest name starting with *prefix*.

    Names are compared as plain strings, so ``AndroidStudio2024.2`` beats
    ``AndroidStudio2023.1`` but ``AndroidStudio9`` also beats
    ``AndroidStudio10``.

    Returns None if *base_path* is missing or unreadable, or nothing matches.
    """
    try:
        matches = [child for child in Path(base_path).iterdir() if child.name.startswith(prefix)]
    except OSError:
        log.debug("Cannot list %s", base_path)
        return None
    if not matches:
        return None
    return max(matches, key=lambda child: child.name)


def default_shell() -> str:
    """Return the user's login shell, defaulting to zsh."""
    return os.environ.get("SHELL") or _DEFAULT_SHELL


def resolve_executable_path(
    tool_name: str,
    shell: str | None = None,
    timeout: float | None = _SHELL_TIMEOUT,
) -> Path | None:
    """Resolve *tool_name* through the user's interactive login shell.

    Running ``which`` inside ``$SHELL -ilc`` picks up PATH entries the user
    configured in their shell profiles (e.g. a Flutter SDK in ~/development)
    that a GUI or cron environment would not see.

    Returns:
        The absolute path with symlinks resolved, or None when the shell
        cannot be run or prints no usable path.
    """
    shell = shell or default_shell()
    cmd = [shell, "-ilc", f"which {shlex.quote(tool_name)}"]
    try:
        proc = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        log.warning("Looking up '%s' via %s timed out", tool_name, shell)
        return None
    except OSError as e:
        log.warning("Could not run %s to look up '%s': %s", shell, tool_name, e)
        return None

    log.debug("Raw output from %s: %r", " ".join(cmd), proc.stdout)
    lines = [
        line.strip()
        for line in (proc.stdout or "").splitlines()
        if "permission denied" not in line.lower() and line.strip()
    ]
    if not lines:
        return None

    candidate = lines[-1]
    if not os.path.isabs(candidate):
        log.info("'%s' not found via %s: %s", tool_name, shell, candidate)
        return None

    resolved = Path(candidate).resolve()
    if not resolved.exists():
        log.debug("Resolved %s path does not exist: %s", tool_name, resolved)
    return resolved
