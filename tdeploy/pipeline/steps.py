"""The deployment steps, in pipeline order.

Each step is a plain function ``(ctx, runner) -> Result[None, DeployError]``.
``runner`` already carries the credentials the step declared; nothing else in
the process environment is secret-bearing.

Gating follows the Azure Pipelines template:

- ``trigger``: template-time inclusion (``main_dev`` / ``release`` steps).
- ``skip_when_mode_skip``: runtime condition on ``TOPLEVEL_MODE``.
"""

from __future__ import annotations

import base64
import binascii
import os
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from tdeploy.core.config import DeployConfig
from tdeploy.core.result import Err, Ok, Result
from tdeploy.output.console import Style
from tdeploy.pipeline.artifacts import collect_artifacts
from tdeploy.pipeline.context import TOPLEVEL_MODE_VARIABLE, DeployContext
from tdeploy.pipeline.mode import resolve_toplevel_mode
from tdeploy.pipeline.model import DeployError, ToplevelMode, TriggerParams
from tdeploy.tools.commands import CommandRunner
from tdeploy.tools.cranko import Cranko
from tdeploy.tools.git import Git
from tdeploy.tools.installer import install_cranko

GITHUB_TOKEN = "GITHUB_TOKEN"
CARGO_REGISTRY_TOKEN = "CARGO_REGISTRY_TOKEN"
ARCHLINUX_DEPLOY_KEY = "ARCHLINUX_DEPLOY_KEY_BASE64"

StepTrigger = Literal["always", "main_dev", "release"]
StepAction = Callable[[DeployContext, CommandRunner], Result[None, DeployError]]


@dataclass(frozen=True, slots=True)
class Step:
    id: str
    display_name: str
    action: StepAction
    trigger: StepTrigger = "always"
    skip_when_mode_skip: bool = False
    secrets: tuple[str, ...] = ()
    enabled: Callable[[DeployConfig], bool] | None = None

    def skip_reason(
        self,
        *,
        params: TriggerParams,
        config: DeployConfig,
        mode: ToplevelMode | None,
    ) -> str | None:
        """Return why this step does not run, or None if it runs.

        ``mode`` may only be None for steps that do not depend on it.
        """
        if self.enabled is not None and not self.enabled(config):
            return "disabled in config"
        if self.trigger == "main_dev" and not params.is_main_dev:
            return "not a main-dev update"
        if self.trigger == "release" and not params.is_release:
            return "not a release"
        if self.skip_when_mode_skip and mode is not None and mode.is_skip:
            return f"{TOPLEVEL_MODE_VARIABLE} is skip"
        return None


def _chain(*results: Callable[[], Result[None, DeployError]]) -> Result[None, DeployError]:
    # Run thunks in order, stopping at the first failure (set -e).
    for thunk in results:
        result = thunk()
        if isinstance(result, Err):
            return result
    return Ok(None)


def _artifacts(ctx: DeployContext) -> Result[list[Path], DeployError]:
    result = collect_artifacts(
        pipeline_workspace=ctx.pipeline_workspace,
        patterns=ctx.config.artifacts.patterns,
    )
    if isinstance(result, Err) and ctx.dry_run:
        ctx.console.warning(result.error.message)
        return Ok([ctx.pipeline_workspace / p for p in ctx.config.artifacts.patterns])
    return result


def install_cranko_step(ctx: DeployContext, runner: CommandRunner) -> Result[None, DeployError]:
    del runner
    # PATH must change on the shared runner so later steps see the binary.
    result = install_cranko(
        runner=ctx.runner,
        http=ctx.http,
        fetch_url=ctx.config.cranko.fetch_url,
        azure=ctx.azure,
    )
    if isinstance(result, Err):
        return result
    ctx.console.print(f"cranko installed in {result.value}", Style.DIM)
    return Ok(None)


def restore_release_commit(ctx: DeployContext, runner: CommandRunner) -> Result[None, DeployError]:
    git = Git(runner)
    bundle = ctx.pipeline_workspace / ctx.config.git.release_bundle
    if not ctx.dry_run and not bundle.is_file():
        return Err(
            DeployError(
                kind="io_failed",
                message=f"release bundle not found: {bundle}",
                hint="The build stage publishes it as the git-release artifact",
            )
        )
    return _chain(
        lambda: git.switch_create(ctx.config.git.release_branch),
        lambda: git.pull_ff_only(bundle),
        lambda: git.show(),
    )


def set_toplevel_mode(ctx: DeployContext, runner: CommandRunner) -> Result[None, DeployError]:
    resolved = resolve_toplevel_mode(
        params=ctx.params,
        cranko=Cranko(runner),
        project=ctx.config.toplevel,
    )
    if isinstance(resolved, Err):
        return resolved

    mode = resolved.value
    stored = ctx.state.set_mode(mode)
    if isinstance(stored, Err):
        return stored

    ctx.console.info(f"toplevel version: {ctx.params.describe()} => {mode}")
    ctx.azure.set_variable(TOPLEVEL_MODE_VARIABLE, str(mode))
    return Ok(None)


def setup_credentials(ctx: DeployContext, runner: CommandRunner) -> Result[None, DeployError]:
    git = Git(runner)
    cranko = Cranko(runner)
    return _chain(
        lambda: git.config_global("user.email", ctx.config.git.user_email),
        lambda: git.config_global("user.name", ctx.config.git.user_name),
        lambda: cranko.install_credential_helper(),
    )


def update_book(ctx: DeployContext, runner: CommandRunner) -> Result[None, DeployError]:
    mode = ctx.state.get_mode()
    if isinstance(mode, Err):
        return mode

    book = ctx.config.book
    script = ctx.repo_root / book.push_script
    return runner.execute(
        [
            str(script),
            str(ctx.pipeline_workspace / book.tree),
            book.repo_url,
            str(mode.value),
            book.message,
        ]
    )


def recreate_continuous_release(
    ctx: DeployContext, runner: CommandRunner
) -> Result[None, DeployError]:
    git = Git(runner)
    cranko = Cranko(runner)
    tag = ctx.config.continuous.tag
    remote = ctx.config.git.remote

    # Expand globs first so a missing build output fails before the old
    # release is deleted.
    artifacts = _artifacts(ctx)
    if isinstance(artifacts, Err):
        return artifacts

    prepared = _chain(
        lambda: cranko.delete_release(tag),
        lambda: git.tag_force(tag, "HEAD"),
        lambda: git.push(remote, tag, force=True, tags=True),
    )
    if isinstance(prepared, Err):
        return prepared

    sha = git.rev_parse_short("HEAD")
    if isinstance(sha, Err):
        return sha

    return _chain(
        lambda: cranko.create_custom_release(
            tag,
            name=ctx.config.continuous.name,
            desc=f"Continuous deployment of commit {sha.value}",
            prerelease=True,
        ),
        lambda: cranko.upload_artifacts_by_tag(tag, artifacts.value),
    )


def create_release_tags(ctx: DeployContext, runner: CommandRunner) -> Result[None, DeployError]:
    del ctx
    return Cranko(runner).tag_releases()


def update_release_branch(ctx: DeployContext, runner: CommandRunner) -> Result[None, DeployError]:
    branch = ctx.config.git.release_branch
    return Git(runner).push(ctx.config.git.remote, f"{branch}:{branch}", tags=True)


def publish_crates(ctx: DeployContext, runner: CommandRunner) -> Result[None, DeployError]:
    del ctx
    return Cranko(runner).cargo_publish_released()


def create_github_releases(ctx: DeployContext, runner: CommandRunner) -> Result[None, DeployError]:
    cranko = Cranko(runner)
    created = cranko.create_releases()
    if isinstance(created, Err):
        return created

    project = ctx.config.toplevel
    released = cranko.if_released(project)
    if isinstance(released, Err):
        return released
    if not released.value:
        ctx.console.print(f"{project} not released; no artifacts to upload", Style.DIM)
        return Ok(None)

    artifacts = _artifacts(ctx)
    if isinstance(artifacts, Err):
        return artifacts
    return cranko.upload_artifacts(project, artifacts.value)


def _write_private_file(data: bytes) -> Result[Path, DeployError]:
    # mkstemp creates the file with mode 0600.
    try:
        fd, name = tempfile.mkstemp(prefix="deploy-key.")
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except OSError as e:
        return Err(DeployError(kind="io_failed", message=f"cannot write deploy key: {e}"))
    return Ok(Path(name))


def update_archlinux(ctx: DeployContext, runner: CommandRunner) -> Result[None, DeployError]:
    # `base64 -d` ignores line breaks but rejects anything outside the alphabet.
    encoded = "".join((ctx.secret(ARCHLINUX_DEPLOY_KEY) or "").split())
    try:
        key = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        return Err(
            DeployError(
                kind="invalid_input",
                message=f"{ARCHLINUX_DEPLOY_KEY} is not valid base64",
                hint=str(e),
            )
        )

    version = Cranko(runner).show_version(ctx.config.toplevel)
    if isinstance(version, Err):
        return version

    keyfile = _write_private_file(key)
    if isinstance(keyfile, Err):
        return keyfile

    try:
        script = ctx.repo_root / ctx.config.arch.deploy_script
        return runner.execute(["bash", str(script), str(keyfile.value), version.value])
    finally:
        keyfile.value.unlink(missing_ok=True)


STEPS: tuple[Step, ...] = (
    Step(
        id="install-cranko",
        display_name="Install latest Cranko",
        action=install_cranko_step,
        enabled=lambda config: config.cranko.install,
    ),
    Step(
        id="restore-release-commit",
        display_name="Restore release commit",
        action=restore_release_commit,
    ),
    Step(
        id="set-toplevel-mode",
        display_name="Set toplevel release mode",
        action=set_toplevel_mode,
    ),
    # GitHub releases are created for any released project, so credentials
    # are needed even when the toplevel mode is skip.
    Step(
        id="setup-credentials",
        display_name="Set up GitHub push credentials",
        action=setup_credentials,
        secrets=(GITHUB_TOKEN,),
    ),
    Step(
        id="update-book",
        display_name="Update book HTML",
        action=update_book,
        skip_when_mode_skip=True,
        secrets=(GITHUB_TOKEN,),
    ),
    Step(
        id="recreate-continuous-release",
        display_name="Recreate continuous-deployment GitHub release",
        action=recreate_continuous_release,
        trigger="main_dev",
        secrets=(GITHUB_TOKEN,),
    ),
    Step(
        id="create-release-tags",
        display_name="Create release tags",
        action=create_release_tags,
        trigger="release",
    ),
    Step(
        id="update-release-branch",
        display_name="Update release branch",
        action=update_release_branch,
        trigger="release",
        secrets=(GITHUB_TOKEN,),
    ),
    Step(
        id="publish-crates",
        display_name="Publish updated Cargo crates",
        action=publish_crates,
        trigger="release",
        secrets=(CARGO_REGISTRY_TOKEN,),
    ),
    Step(
        id="create-github-releases",
        display_name="Create per-project GitHub releases",
        action=create_github_releases,
        trigger="release",
        secrets=(GITHUB_TOKEN,),
    ),
    Step(
        id="update-archlinux",
        display_name="Update ArchLinux package",
        action=update_archlinux,
        trigger="release",
        skip_when_mode_skip=True,
        secrets=(ARCHLINUX_DEPLOY_KEY,),
    ),
)

STEP_IDS: tuple[str, ...] = tuple(step.id for step in STEPS)
