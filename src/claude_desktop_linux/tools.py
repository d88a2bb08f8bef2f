"""
Thin wrappers around the external programs the pipeline drives.

All collaborators (7z, asar, npm, rsync, dpkg-deb, flatpak-builder, ...)
are invoked through run() so that a failure always surfaces as one of
the pipeline's own exception types.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

from claude_desktop_linux.exceptions import ClaudeBuildError


def which(command: str) -> str | None:
    """Return the absolute path of a command on PATH, or None."""
    return shutil.which(command)


def has_command(command: str) -> bool:
    return which(command) is not None


def run(
    cmd: Sequence[str | os.PathLike],
    *,
    error: type[ClaudeBuildError] = ClaudeBuildError,
    cwd: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    capture: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run a command to completion.

    Args:
        cmd: Program and arguments
        error: Exception class raised when the command fails or is missing
        cwd: Working directory
        env: Full environment (defaults to the current one)
        capture: Capture stdout/stderr instead of streaming them

    Raises:
        error: If the program is missing or exits non-zero
    """
    args = [str(part) for part in cmd]
    try:
        return subprocess.run(
            args,
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env is not None else None,
            capture_output=capture,
            text=True,
            check=True,
        )
    except FileNotFoundError:
        raise error(f"{args[0]} not found")
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or e.stdout or "").strip() if capture else ""
        message = f"{args[0]} failed with exit code {e.returncode}"
        raise error(f"{message}: {detail}" if detail else message)


def prepend_path(directory: Path | str) -> None:
    """Put a directory in front of PATH for the rest of this process."""
    current = os.environ.get("PATH", "")
    os.environ["PATH"] = f"{directory}{os.pathsep}{current}" if current else str(directory)
