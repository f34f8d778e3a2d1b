"""Process and output utilities.

Provides a thin wrapper around subprocess for running external commands
(git, mostly), plus the output helpers used to report release progress.
"""

from __future__ import annotations

import subprocess
from pathlib import Path


def run(*args: str, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    """Run a command and capture its output.

    Never raises on a non-zero exit: callers inspect ``returncode`` and
    attach ``stdout``/``stderr`` to whatever error they raise, so the
    operator sees the tool's own diagnosis.

    Args:
        *args: Command and arguments (e.g., "git", "tag", "releases/v1.0.0").
        cwd: Directory to run in. Defaults to the current directory.

    Returns:
        CompletedProcess with text stdout/stderr.
    """
    return subprocess.run(args, cwd=cwd, capture_output=True, text=True, check=False)


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to mark phase boundaries of the release cycle in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def echo(msg: str) -> None:
    """Print an indented progress line under the current step."""
    print(f"  {msg}")

