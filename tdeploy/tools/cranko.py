"""Invocations of the cranko release-automation CLI.

Only the subcommands used by the deployment pipeline are wrapped. Queries
(``cranko show ...``) run even in dry-run so the toplevel mode can be
resolved; everything else goes through ``CommandRunner.execute``.
"""

from __future__ import annotations

from pathlib import Path

from tdeploy.core.result import Err, Ok, Result
from tdeploy.pipeline.model import DeployError
from tdeploy.tools.commands import CommandRunner

CRANKO = "cranko"


class Cranko:
    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def ensure_available(self) -> Result[None, DeployError]:
        if self.runner.which(CRANKO) is None:
            return Err(
                DeployError(
                    kind="tool_missing",
                    message="cranko: missing",
                    hint="Enable [cranko] install or put cranko on PATH",
                )
            )
        return Ok(None)

    # Queries

    def if_released(self, project: str) -> Result[bool, DeployError]:
        """True if the release commit contains a new release of ``project``."""
        return self.runner.probe([CRANKO, "show", "if-released", "--exit-code", project])

    def show_version(self, project: str) -> Result[str, DeployError]:
        result = self.runner.query([CRANKO, "show", "version", project])
        if isinstance(result, Err):
            return result

        version = result.value.strip()
        if not version:
            return Err(
                DeployError(
                    kind="query_failed",
                    message=f"cranko reported no version for {project}",
                )
            )
        return Ok(version)

    # GitHub

    def install_credential_helper(self) -> Result[None, DeployError]:
        return self.runner.execute([CRANKO, "github", "install-credential-helper"])

    def delete_release(self, tag: str) -> Result[None, DeployError]:
        return self.runner.execute([CRANKO, "github", "delete-release", tag])

    def create_custom_release(
        self,
        tag: str,
        *,
        name: str,
        desc: str,
        prerelease: bool = False,
    ) -> Result[None, DeployError]:
        cmd = [CRANKO, "github", "create-custom-release", "--name", name]
        if prerelease:
            cmd.append("--prerelease")
        cmd.extend(["--desc", desc, tag])
        return self.runner.execute(cmd)

    def upload_artifacts_by_tag(self, tag: str, paths: list[Path]) -> Result[None, DeployError]:
        return self.runner.execute(
            [CRANKO, "github", "upload-artifacts", "--by-tag", tag, *map(str, paths)]
        )

    def upload_artifacts(self, project: str, paths: list[Path]) -> Result[None, DeployError]:
        return self.runner.execute([CRANKO, "github", "upload-artifacts", project, *map(str, paths)])

    def create_releases(self) -> Result[None, DeployError]:
        """Create one GitHub release per project released in this commit."""
        return self.runner.execute([CRANKO, "github", "create-releases"])

    # Release workflow

    def tag_releases(self) -> Result[None, DeployError]:
        return self.runner.execute([CRANKO, "release-workflow", "tag"])

    def cargo_publish_released(self) -> Result[None, DeployError]:
        return self.runner.execute(
            [CRANKO, "cargo", "foreach-released", "--", "publish", "--no-verify"]
        )
