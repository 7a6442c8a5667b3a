"""Error presentation utilities.

Centralized error formatting and exit code mapping for the CLI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verse.adapters.errors import AdapterError
from verse.core.config import ConfigError
from verse.core.errors import ErrorCode
from verse.engine.errors import DuplicateModule, InvalidVersion, ModuleNotFound, WriteFailed
from verse.git.repository import GitError
from verse.output.console import Style
from verse.services.changelog import ChangelogError
from verse.services.runner import RunError, RunnerError

if TYPE_CHECKING:
    from verse.output.console import ConsoleProtocol

__all__ = ["print_run_error", "run_error_exit_code"]


def print_run_error(error: RunError, console: ConsoleProtocol) -> None:
    """Print a run error to console with appropriate formatting."""
    match error:
        case ConfigError(message=message, path=path):
            console.error(message)
            if path is not None:
                console.print(f"config: {path}", Style.DIM)
        case AdapterError(message=message, hint=hint) | RunnerError(message=message, hint=hint):
            console.error(message)
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case ModuleNotFound() | DuplicateModule() | InvalidVersion() | WriteFailed():
            console.error(error.message)
        case GitError(command=command, message=message, returncode=rc):
            console.error(f"git {command} failed (exit {rc})")
            if message:
                console.print(message, Style.DIM)
        case ChangelogError(path=path, message=message):
            console.error(f"cannot write changelog {path}: {message}")


def run_error_exit_code(error: RunError) -> int:
    """Get exit code for a run error."""
    match error:
        case ConfigError():
            return int(ErrorCode.USER_ERROR)
        case RunnerError() | AdapterError():
            return int(ErrorCode.ENV_ERROR)
        case ModuleNotFound() | DuplicateModule() | InvalidVersion():
            return int(ErrorCode.ENGINE_ERROR)
        case GitError():
            return int(ErrorCode.GIT_ERROR)
        case WriteFailed() | ChangelogError():
            return int(ErrorCode.IO_ERROR)
