"""Subprocess execution for git and build-tool calls.

Every external command verse runs (``git``, ``gradlew``) goes through ``run``
so callers receive a ``Result`` instead of handling ``CalledProcessError``:

    match run(["git", "rev-parse", "--short", "HEAD"], cwd=repo_root):
        case Ok(stdout):
            sha = stdout.strip()
        case Err(error):
            console.error(f"{error}: {error.detail}")
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from verse.core.result import Err, Ok, Result

__all__ = ["NOT_STARTED", "ProcessError", "run"]

NOT_STARTED = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that exited non-zero, timed out or never started.

    ``returncode`` is ``NOT_STARTED`` when the process could not be spawned
    or was killed on timeout.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def detail(self) -> str:
        """Most useful diagnostic text: stderr, else stdout, else empty."""
        return self.stderr.strip() or self.stdout.strip()

    def __str__(self) -> str:
        shown = " ".join(self.command[:3])
        if len(self.command) > 3:
            shown += " ..."
        if self.timed_out:
            return f"{shown} timed out"
        return f"{shown} failed (exit {self.returncode})"


def run(
    cmd: Sequence[str],
    cwd: Path,
    *,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run ``cmd`` in ``cwd`` and return its captured stdout.

    Args:
        cmd: Program and arguments.
        cwd: Working directory.
        env: Full environment for the child (inherits ours when None).
        timeout: Seconds before the child is killed (None waits forever).
    """
    command = tuple(cmd)
    try:
        proc = subprocess.run(
            list(command),
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return Err(
            ProcessError(
                command,
                NOT_STARTED,
                "",
                f"Command timed out after {timeout}s",
                timed_out=True,
            )
        )
    except OSError as e:
        return Err(ProcessError(command, NOT_STARTED, "", str(e)))

    if proc.returncode == 0:
        return Ok(proc.stdout)
    return Err(ProcessError(command, proc.returncode, proc.stdout, proc.stderr))
