"""Exit codes for the cratepub CLI.

Each failed run maps to exactly one code so that CI jobs can tell a bad
version argument from a rejected push or a registry conflict without parsing
output.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are stable.

    - 0: Success
    - 1: User error (malformed or non-advancing version, bad config)
    - 3: Build error (test gate failed)
    - 4: Network error (registry unreachable or timed out; publish is re-runnable)
    - 5: I/O error (manifest missing or unusable)
    - 6: VCS error (commit, push or tag failed)
    - 7: Registry error (authentication, version conflict, rejected upload)
    """

    OK = 0
    USER_ERROR = 1
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    VCS_ERROR = 6
    REGISTRY_ERROR = 7

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
