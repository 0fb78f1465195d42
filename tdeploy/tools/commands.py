"""Command execution for pipeline steps.

``CommandRunner`` is the only place steps reach external processes. Every
command line is echoed first, like ``set -x``. In dry-run, commands that
change anything are only echoed.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from shutil import which

from tdeploy.core.result import Err, Ok, Result
from tdeploy.output.console import ConsoleProtocol, Style
from tdeploy.pipeline.model import DeployError
from tdeploy.platform.process import ProcessError
from tdeploy.platform.process import run as run_process
from tdeploy.platform.process import run_streaming

__all__ = ["CommandRunner", "SECRET_ENV_VARS", "process_error_to_deploy", "scrub_secrets"]

# Never handed to a child unless the running step asks for it.
SECRET_ENV_VARS = ("GITHUB_TOKEN", "CARGO_REGISTRY_TOKEN", "ARCHLINUX_DEPLOY_KEY_BASE64")


def process_error_to_deploy(error: ProcessError) -> DeployError:
    if error.returncode == -1 and "timed out" not in error.stderr:
        return DeployError(
            kind="tool_missing",
            message=f"{error.command[0]}: could not be started",
            hint=error.stderr.strip() or None,
        )
    return DeployError(
        kind="command_failed",
        message=str(error),
        hint=error.stderr.strip() or None,
    )


def scrub_secrets(env: Mapping[str, str]) -> dict[str, str]:
    return {k: v for k, v in env.items() if k not in SECRET_ENV_VARS}


@dataclass
class CommandRunner:
    """Runs commands in ``cwd`` with an explicit child environment.

    Attributes:
        cwd: Working directory (the checked-out repository).
        env: Environment handed to children. Secrets are added per step
            through ``with_secrets``.
        console: Where command lines are echoed.
        dry_run: If set, ``execute`` only echoes.
    """

    cwd: Path
    console: ConsoleProtocol
    env: dict[str, str] = field(default_factory=lambda: scrub_secrets(os.environ))
    dry_run: bool = False

    def with_secrets(self, secrets: Mapping[str, str]) -> CommandRunner:
        """Return a runner whose children also see ``secrets``.

        The PATH and other settings stay shared through a copy of ``env``.
        """
        env = dict(self.env)
        env.update(secrets)
        return replace(self, env=env)

    def prepend_path(self, directory: Path) -> None:
        current = self.env.get("PATH", "")
        self.env["PATH"] = f"{directory}{os.pathsep}{current}" if current else str(directory)

    def which(self, tool: str) -> str | None:
        return which(tool, path=self.env.get("PATH"))

    def query(self, cmd: list[str]) -> Result[str, DeployError]:
        """Run a read-only command and return its stdout (also in dry-run)."""
        self.console.command(cmd)
        return run_process(cmd, cwd=self.cwd, env=self.env).map_err(process_error_to_deploy)

    def probe(self, cmd: list[str]) -> Result[bool, DeployError]:
        """Run a read-only ``--exit-code`` style check.

        Exit 0 is True, exit 1 is False, anything else is an error.
        """
        self.console.command(cmd)
        result = run_process(cmd, cwd=self.cwd, env=self.env)
        if isinstance(result, Ok):
            return Ok(True)
        if result.error.returncode == 1:
            return Ok(False)
        return Err(process_error_to_deploy(result.error))

    def execute(self, cmd: list[str]) -> Result[None, DeployError]:
        """Run a command that changes state, streaming its output."""
        self.console.command(cmd)
        if self.dry_run:
            self.console.print("(dry-run) not executed", Style.DIM)
            return Ok(None)

        return run_streaming(cmd, cwd=self.cwd, env=self.env).map_err(process_error_to_deploy)
