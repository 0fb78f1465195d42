"""Error presentation and exit code mapping."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tdeploy.core.errors import ErrorCode
from tdeploy.output.console import Style
from tdeploy.pipeline.model import DeployError

if TYPE_CHECKING:
    from tdeploy.output.console import ConsoleProtocol

__all__ = ["deploy_error_exit_code", "print_deploy_error"]


def print_deploy_error(error: DeployError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def deploy_error_exit_code(error: DeployError) -> int:
    match error.kind:
        case "invalid_input" | "config_invalid":
            return int(ErrorCode.USER_ERROR)
        case "tool_missing" | "credential_missing":
            return int(ErrorCode.ENV_ERROR)
        case "command_failed" | "query_failed" | "mode_state":
            return int(ErrorCode.STEP_FAILED)
        case "download_failed":
            return int(ErrorCode.NETWORK_ERROR)
        case "artifacts_missing" | "io_failed":
            return int(ErrorCode.IO_ERROR)
    return int(ErrorCode.STEP_FAILED)
