"""Subprocess helpers for running build commands.

Wraps subprocess.run so that every build command:
- never opens a console window on Windows,
- never inherits the terminal's stdin,
- returns stdout and stderr merged into one captured string.
"""

import logging
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Exit status and merged output of one command."""

    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW  # type: ignore[attr-defined]
    return 0


def safe_run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    If 'creationflags' is passed it is OR'd with the platform default.
    stdin is redirected to DEVNULL unless given explicitly.
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return subprocess.run(cmd, **kwargs)


def run_command(cmd: list[str], cwd: Path | None = None) -> CommandResult:
    """Run a build command and capture its output.

    A command that cannot be launched at all (missing executable, no
    permission) is reported as a failed result with exit code 127 instead of
    raising, so the orchestrator handles it like any other failed build.

    Args:
        cmd: Command and arguments
        cwd: Working directory (defaults to the current directory)

    Returns:
        CommandResult with the exit status and merged stdout/stderr
    """
    if not cmd:
        return CommandResult(returncode=127, output="Empty build command")

    logger.debug("Executing: %s", " ".join(cmd))
    try:
        proc = safe_run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.debug("Failed to launch %s: %s", cmd[0], e)
        return CommandResult(returncode=127, output=f"Could not execute '{cmd[0]}': {e}")

    return CommandResult(returncode=proc.returncode, output=proc.stdout or "")
