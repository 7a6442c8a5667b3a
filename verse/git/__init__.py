"""Git operations."""

from .repository import COMMIT_END_MARKER, LOG_FORMAT, GitError, Repository

__all__ = ["COMMIT_END_MARKER", "GitError", "LOG_FORMAT", "Repository"]
