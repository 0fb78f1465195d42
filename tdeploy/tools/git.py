"""Git invocations used by the deployment steps.

Usage:
    git = Git(runner)
    match git.rev_parse_short():
        case Ok(sha):
            print(f"deploying {sha}")
        case Err(e):
            print(f"git failed: {e.message}")
"""

from __future__ import annotations

from pathlib import Path

from tdeploy.core.result import Err, Ok, Result
from tdeploy.pipeline.model import DeployError
from tdeploy.tools.commands import CommandRunner

__all__ = ["Git"]


class Git:
    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def switch_create(self, branch: str) -> Result[None, DeployError]:
        return self.runner.execute(["git", "switch", "-c", branch])

    def pull_ff_only(self, source: Path | str) -> Result[None, DeployError]:
        """Fast-forward the current branch from a remote or a bundle file."""
        return self.runner.execute(["git", "pull", "--ff-only", str(source)])

    def show(self) -> Result[None, DeployError]:
        return self.runner.execute(["git", "show"])

    def config_global(self, key: str, value: str) -> Result[None, DeployError]:
        return self.runner.execute(["git", "config", "--global", key, value])

    def tag_force(self, tag: str, ref: str = "HEAD") -> Result[None, DeployError]:
        return self.runner.execute(["git", "tag", "-f", tag, ref])

    def push(
        self,
        remote: str,
        *refspecs: str,
        force: bool = False,
        tags: bool = False,
    ) -> Result[None, DeployError]:
        cmd = ["git", "push"]
        if force:
            cmd.append("-f")
        if tags:
            cmd.append("--tags")
        cmd.append(remote)
        cmd.extend(refspecs)
        return self.runner.execute(cmd)

    def rev_parse_short(self, ref: str = "HEAD") -> Result[str, DeployError]:
        result = self.runner.query(["git", "rev-parse", "--short", ref])
        if isinstance(result, Err):
            return result

        sha = result.value.strip()
        if not sha:
            return Err(DeployError(kind="query_failed", message=f"git rev-parse {ref}: empty"))
        return Ok(sha)
