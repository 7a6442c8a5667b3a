from pathlib import Path

import pytest

from verse.adapters.errors import AdapterError
from verse.core.config import ConfigError
from verse.core.errors import ErrorCode
from verse.engine.errors import DuplicateModule, InvalidVersion, ModuleNotFound, WriteFailed
from verse.git.repository import GitError
from verse.output.console import MockConsole, Style
from verse.output.errors import print_run_error, run_error_exit_code
from verse.services.changelog import ChangelogError
from verse.services.runner import RunnerError


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (ConfigError("bad key"), ErrorCode.USER_ERROR),
        (AdapterError(kind="gradle_failed", message="gradlew exited 1"), ErrorCode.ENV_ERROR),
        (RunnerError(kind="dirty_tree", message="dirty"), ErrorCode.ENV_ERROR),
        (ModuleNotFound(":ghost"), ErrorCode.ENGINE_ERROR),
        (DuplicateModule(":core"), ErrorCode.ENGINE_ERROR),
        (InvalidVersion(":core", "one"), ErrorCode.ENGINE_ERROR),
        (GitError("push", "rejected"), ErrorCode.GIT_ERROR),
        (WriteFailed("disk full"), ErrorCode.IO_ERROR),
        (ChangelogError(Path("CHANGELOG.md"), "read-only"), ErrorCode.IO_ERROR),
    ],
)
def test_exit_code_per_error(error: object, code: ErrorCode) -> None:
    assert run_error_exit_code(error) == int(code)  # type: ignore[arg-type]


class TestPrintRunError:
    def test_config_error_shows_path(self) -> None:
        console = MockConsole()
        print_run_error(ConfigError("unknown key 'x'", Path("verse.toml")), console)

        assert console.has_error()
        assert console.find("error: unknown key 'x'")
        assert console.find("config: verse.toml")

    def test_hint_is_printed_dim(self) -> None:
        console = MockConsole()
        print_run_error(
            RunnerError(kind="dirty_tree", message="working directory is not clean", hint="use --dry-run"),
            console,
        )

        hint = console.find("hint: use --dry-run")
        assert len(hint) == 1
        assert hint[0].style is Style.DIM

    def test_adapter_error_without_hint(self) -> None:
        console = MockConsole()
        print_run_error(AdapterError(kind="hierarchy_missing", message="no hierarchy"), console)

        assert console.messages == ["error: no hierarchy"]

    def test_engine_error_uses_message(self) -> None:
        console = MockConsole()
        print_run_error(InvalidVersion(":core", "one"), console)

        assert console.messages == ["error: invalid version for :core: 'one'"]

    def test_git_error_includes_command_and_detail(self) -> None:
        console = MockConsole()
        print_run_error(GitError("push", "remote rejected", 128), console)

        assert console.find("error: git push failed (exit 128)")
        assert console.find("remote rejected")

    def test_changelog_error(self) -> None:
        console = MockConsole()
        print_run_error(ChangelogError(Path("core/CHANGELOG.md"), "permission denied"), console)

        assert console.find("cannot write changelog core/CHANGELOG.md: permission denied")
