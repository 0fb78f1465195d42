from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from tdeploy.core.config import DeployConfig
from tdeploy.core.result import Err, Ok, Result
from tdeploy.output.azure import AzureLogger
from tdeploy.output.console import ConsoleProtocol
from tdeploy.pipeline.model import DeployError, ToplevelMode, TriggerParams
from tdeploy.tools.commands import CommandRunner
from tdeploy.tools.http import HttpClient, RealHttpClient

TOPLEVEL_MODE_VARIABLE = "TOPLEVEL_MODE"


@dataclass
class DeployState:
    """Values derived during a run.

    The toplevel mode is written once by the mode step and only read after.
    """

    _mode: ToplevelMode | None = None

    @property
    def has_mode(self) -> bool:
        return self._mode is not None

    def set_mode(self, mode: ToplevelMode) -> Result[None, DeployError]:
        if self._mode is not None:
            return Err(
                DeployError(
                    kind="mode_state",
                    message=f"{TOPLEVEL_MODE_VARIABLE} already set to {self._mode}",
                )
            )
        self._mode = mode
        return Ok(None)

    def get_mode(self) -> Result[ToplevelMode, DeployError]:
        if self._mode is None:
            return Err(
                DeployError(
                    kind="mode_state",
                    message=f"{TOPLEVEL_MODE_VARIABLE} read before it was set",
                )
            )
        return Ok(self._mode)


@dataclass
class DeployContext:
    """Everything a step needs.

    Attributes:
        repo_root: The checked-out repository (cwd for commands).
        pipeline_workspace: Azure's ``Pipeline.Workspace``, where earlier
            stages left the release bundle, the book and the artifacts.
        secrets: Source of credentials; only read for steps declaring them.
    """

    repo_root: Path
    pipeline_workspace: Path
    params: TriggerParams
    config: DeployConfig
    console: ConsoleProtocol
    runner: CommandRunner
    secrets: Mapping[str, str]
    azure: AzureLogger
    http: HttpClient = field(default_factory=RealHttpClient)
    state: DeployState = field(default_factory=DeployState)

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run

    def secret(self, name: str) -> str | None:
        value = self.secrets.get(name, "").strip()
        return value or None
