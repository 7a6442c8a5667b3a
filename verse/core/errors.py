"""Exit codes for CLI commands.

The numeric values are part of the CLI contract (CI jobs branch on them) and
must stay stable:
- 0: Success
- 1: User error (bad flags, invalid config)
- 2: Environment error (not a git repo, build tool missing)
- 3: Engine error (graph mismatch, unparseable version)
- 4: Git error (log, tag, commit or push failed)
- 5: I/O error (version or changelog file could not be written)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    ENGINE_ERROR = 3
    GIT_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
