"""Exit codes for the deployment CLI.

A failed deployment is reported to the CI agent through the process exit
status, so these values must remain stable.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (bad parameters, bad config)
    - 2: Environment error (missing tool, missing credential)
    - 3: A pipeline step failed
    - 4: Network error (installer download failed)
    - 5: I/O error (key file, artifacts)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    STEP_FAILED = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
