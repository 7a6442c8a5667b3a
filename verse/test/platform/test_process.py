"""Tests for verse.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from verse.core.result import Err, Ok
from verse.platform.process import NOT_STARTED, ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("git", "status"), returncode=1, stdout="", stderr="fatal")
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("./gradlew", "--quiet", "--console=plain", "hierarchy"),
            returncode=1,
            stdout="",
            stderr="",
        )
        assert str(error) == "./gradlew --quiet --console=plain ... failed (exit 1)"

    def test_str_timed_out(self) -> None:
        error = ProcessError(("git", "push"), NOT_STARTED, "", "", timed_out=True)
        assert str(error) == "git push timed out"

    def test_detail_prefers_stderr(self) -> None:
        assert ProcessError(("x",), 1, "out\n", "err\n").detail == "err"
        assert ProcessError(("x",), 1, "out\n", "  ").detail == "out"
        assert ProcessError(("x",), 1, "", "").detail == ""

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value.strip() == "hello"

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        script = "import sys; sys.stderr.write('nope'); sys.exit(42)"
        result = run([sys.executable, "-c", script], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert result.error.stderr == "nope"

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == NOT_STARTED
        assert result.error.timed_out is False

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)

        assert isinstance(result, Err)
        assert result.error.returncode == NOT_STARTED
        assert result.error.timed_out is True

    def test_runs_in_cwd(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert Path(result.value.strip()).resolve() == tmp_path.resolve()
