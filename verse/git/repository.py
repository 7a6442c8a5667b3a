"""Git repository abstraction.

All operations go through ``verse.platform.process.run`` and return Result
types; nothing here raises on a failed git command.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.last_tag("core@*"):
        case Ok(None):
            print("never released")
        case Ok(tag):
            print(f"last release: {tag}")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from verse.core.result import Err, Ok, Result
from verse.platform.process import ProcessError
from verse.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push"})
# git describe on a history without (matching) tags
_NO_TAG_MARKERS = re.compile(r"No names found|No tags can describe|cannot describe")

COMMIT_END_MARKER = "---COMMIT-END---"
LOG_FORMAT = f"%H%n%s%n%b%n{COMMIT_END_MARKER}"

__all__ = [
    "COMMIT_END_MARKER",
    "GitError",
    "LOG_FORMAT",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class Repository:
    """A git working copy, driven through ``git -C <path>``.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a valid git repository."""
        return (self.path / ".git").exists()

    def log(
        self,
        rev_range: str | None = None,
        paths: Sequence[str] = (),
    ) -> Result[str, GitError]:
        """Raw ``git log`` output in the ``LOG_FORMAT`` layout.

        Args:
            rev_range: e.g. ``core@1.0.0..HEAD``; None for the whole history
            paths: pathspecs restricting the log (``:(exclude)x`` allowed)
        """
        args = ["log", f"--format={LOG_FORMAT}"]
        if rev_range:
            args.append(rev_range)
        if paths:
            args += ["--", *paths]
        return self._git(args, "log")

    def tags(self, pattern: str | None = None) -> Result[list[str], GitError]:
        """Tags matching ``pattern``, highest version first."""
        args = ["tag", "-l", *([pattern] if pattern else []), "--sort=-version:refname"]
        return self._git(args, "tag -l").map(
            lambda out: [line.strip() for line in out.splitlines() if line.strip()]
        )

    def last_tag(self, pattern: str) -> Result[str | None, GitError]:
        """The highest tag matching ``pattern``, or None when there is none."""
        return self.tags(pattern).map(lambda found: found[0] if found else None)

    def nearest_tag(self, exclude: str | None = None, ref: str = "HEAD") -> Result[str | None, GitError]:
        """Closest tag reachable from ``ref`` (``git describe``), or None.

        Args:
            exclude: glob of tags to skip, e.g. ``*@*`` for module tags
            ref: where to start looking
        """
        args = ["describe", "--tags", "--abbrev=0", *(["--exclude", exclude] if exclude else []), ref]
        match self._run(args):
            case Ok(out):
                return Ok(out.strip() or None)
            case Err(e) if e.returncode == 128 and _NO_TAG_MARKERS.search(e.detail):
                return Ok(None)
            case Err(e):
                return Err(_git_error("describe", e))

    def current_branch(self) -> str | None:
        """Branch name, or None on detached HEAD or when git fails."""
        result = self._run(["branch", "--show-current"])
        if isinstance(result, Err):
            return None
        return result.value.strip() or None

    def is_clean(self) -> bool:
        """No staged, unstaged or untracked changes.

        An unreadable status counts as dirty.
        """
        result = self._run(["status", "--porcelain"])
        return isinstance(result, Ok) and not result.value.strip()

    def short_sha(self, ref: str = "HEAD") -> Result[str, GitError]:
        return self._git(["rev-parse", "--short", ref], "rev-parse").map(str.strip)

    def add_all(self) -> Result[None, GitError]:
        return self._git(["add", "-A"], "add").map(lambda _: None)

    def has_staged_changes(self) -> Result[bool, GitError]:
        """True when the index differs from HEAD (``diff --quiet`` exits 1)."""
        result = self._run(["diff", "--cached", "--quiet"])
        match result:
            case Ok(_):
                return Ok(False)
            case Err(e) if e.returncode == 1:
                return Ok(True)
            case Err(e):
                return Err(_git_error("diff --cached", e))

    def commit(self, message: str) -> Result[str, GitError]:
        return self._git(["commit", "-m", message], "commit").map(str.strip)

    def push(self) -> Result[str, GitError]:
        return self._git(["push"], "push").map(str.strip)

    def create_tag(self, name: str, message: str) -> Result[None, GitError]:
        """Create an annotated tag at HEAD."""
        return self._git(["tag", "-a", name, "-m", message], f"tag {name}").map(lambda _: None)

    def push_tags(self) -> Result[str, GitError]:
        return self._git(["push", "--tags"], "push --tags").map(str.strip)

    def _git(self, args: list[str], label: str) -> Result[str, GitError]:
        """Run git and convert a process failure into ``GitError``."""
        return self._run(args).map_err(lambda e: _git_error(label, e))

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        timeout = _GIT_NETWORK_TIMEOUT_SECONDS if args[0] in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)


def _git_error(label: str, error: ProcessError) -> GitError:
    return GitError(
        command=label,
        message=error.detail or f"git {label} failed",
        returncode=error.returncode,
    )
