from __future__ import annotations

import os
from pathlib import Path
from typing import NoReturn

import typer

from tdeploy.core.config import CONFIG_FILE_NAME, DeployConfig, load_config, load_config_or_default
from tdeploy.core.errors import ErrorCode
from tdeploy.core.result import Err
from tdeploy.output.azure import AzureLogger, is_azure_agent
from tdeploy.output.console import ConsoleProtocol, RichConsole
from tdeploy.pipeline.context import DeployContext
from tdeploy.pipeline.model import TriggerParams, parse_bool
from tdeploy.tools.commands import CommandRunner, scrub_secrets


def exit_with(err: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {err}", err=True)
    raise typer.Exit(code=int(code))


def resolve_params(*, main_dev: str, release: str) -> TriggerParams:
    is_main_dev = parse_bool(main_dev, name="isMainDev")
    if isinstance(is_main_dev, Err):
        exit_with(is_main_dev.error.message, code=ErrorCode.USER_ERROR)
    is_release = parse_bool(release, name="isRelease")
    if isinstance(is_release, Err):
        exit_with(is_release.error.message, code=ErrorCode.USER_ERROR)
    return TriggerParams(is_main_dev=is_main_dev.value, is_release=is_release.value)


def resolve_config(*, repo_root: Path, config_path: Path | None) -> DeployConfig:
    if config_path is None:
        result = load_config_or_default(repo_root / CONFIG_FILE_NAME)
    else:
        result = load_config(config_path)
    if isinstance(result, Err):
        exit_with(result.error.message, code=ErrorCode.USER_ERROR)
    return result.value


def build_context(
    *,
    repo: Path,
    pipeline_workspace: Path | None,
    params: TriggerParams,
    config_path: Path | None,
    dry_run: bool,
    console: ConsoleProtocol | None = None,
) -> DeployContext:
    try:
        repo_root = repo.expanduser().resolve()
    except OSError as e:
        exit_with(f"invalid --repo: {e}", code=ErrorCode.USER_ERROR)
    if not repo_root.is_dir():
        exit_with(f"--repo '{repo_root}' is not a directory", code=ErrorCode.USER_ERROR)

    if pipeline_workspace is None:
        exit_with(
            "pipeline workspace unknown (set PIPELINE_WORKSPACE or --pipeline-workspace)",
            code=ErrorCode.ENV_ERROR,
        )

    console = console or RichConsole()
    env = dict(os.environ)
    return DeployContext(
        repo_root=repo_root,
        pipeline_workspace=pipeline_workspace.expanduser().resolve(),
        params=params,
        config=resolve_config(repo_root=repo_root, config_path=config_path),
        console=console,
        runner=CommandRunner(
            cwd=repo_root,
            console=console,
            env=scrub_secrets(env),
            dry_run=dry_run,
        ),
        secrets=env,
        azure=AzureLogger(enabled=is_azure_agent(env)),
    )
