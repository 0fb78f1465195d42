from __future__ import annotations

import os
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from tdeploy import __version__
from tdeploy.cli.context import build_context, exit_with, resolve_config, resolve_params
from tdeploy.core.errors import ErrorCode
from tdeploy.core.result import Err
from tdeploy.output.azure import AzureLogger, is_azure_agent
from tdeploy.output.console import ConsoleProtocol, RichConsole, Style
from tdeploy.output.errors import deploy_error_exit_code, print_deploy_error
from tdeploy.pipeline.context import TOPLEVEL_MODE_VARIABLE
from tdeploy.pipeline.mode import resolve_toplevel_mode
from tdeploy.pipeline.model import ToplevelMode
from tdeploy.pipeline.runner import PipelineReport, plan_pipeline, run_pipeline
from tdeploy.tools.commands import CommandRunner, scrub_secrets
from tdeploy.tools.cranko import Cranko

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_MAIN_DEV_OPTION = typer.Option(
    "false",
    "--main-dev",
    envvar="TDEPLOY_IS_MAIN_DEV",
    help="Update of the main development branch (continuous deployment).",
)
_RELEASE_OPTION = typer.Option(
    "false",
    "--release",
    envvar="TDEPLOY_IS_RELEASE",
    help="Update of the rc branch (official release).",
)
_REPO_OPTION = typer.Option(Path("."), "--repo", help="Checked-out repository root.")
_CONFIG_OPTION = typer.Option(None, "--config", help="Path to deploy.toml.")


def _print_summary(report: PipelineReport, console: ConsoleProtocol) -> None:
    console.header("Summary")
    for outcome in report.outcomes:
        match outcome.status:
            case "succeeded":
                console.success(outcome.display_name)
            case "skipped":
                console.print(f"-- {outcome.display_name} ({outcome.reason})", Style.DIM)
            case "failed":
                console.error(outcome.display_name)
            case "not_run":
                console.print(f"!! {outcome.display_name} (not run)", Style.WARNING)


@app.command()
def run(
    main_dev: str = _MAIN_DEV_OPTION,
    release: str = _RELEASE_OPTION,
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print mutating commands instead of running them."
    ),
    repo: Path = _REPO_OPTION,
    pipeline_workspace: Path | None = typer.Option(
        None,
        "--pipeline-workspace",
        envvar="PIPELINE_WORKSPACE",
        help="Azure Pipeline.Workspace holding the release bundle and artifacts.",
    ),
    config: Path | None = _CONFIG_OPTION,
) -> None:
    """Run the deployment pipeline."""
    ctx = build_context(
        repo=repo,
        pipeline_workspace=pipeline_workspace,
        params=resolve_params(main_dev=main_dev, release=release),
        config_path=config,
        dry_run=dry_run,
    )

    report = run_pipeline(ctx)
    _print_summary(report, ctx.console)

    failure = report.failure
    if failure is not None:
        code = (
            deploy_error_exit_code(failure.error)
            if failure.error is not None
            else int(ErrorCode.STEP_FAILED)
        )
        raise typer.Exit(code=code)


@app.command()
def mode(
    main_dev: str = _MAIN_DEV_OPTION,
    release: str = _RELEASE_OPTION,
    repo: Path = _REPO_OPTION,
    config: Path | None = _CONFIG_OPTION,
) -> None:
    """Resolve and print TOPLEVEL_MODE (latest, skip or a version)."""
    params = resolve_params(main_dev=main_dev, release=release)
    repo_root = repo.expanduser().resolve()
    deploy_config = resolve_config(repo_root=repo_root, config_path=config)

    # Command echo goes to stderr so stdout is just the mode.
    console = RichConsole(stderr=True)
    env = dict(os.environ)
    runner = CommandRunner(cwd=repo_root, console=console, env=scrub_secrets(env))
    result = resolve_toplevel_mode(
        params=params,
        cranko=Cranko(runner),
        project=deploy_config.toplevel,
    )
    if isinstance(result, Err):
        print_deploy_error(result.error, console)
        raise typer.Exit(code=deploy_error_exit_code(result.error))

    typer.echo(str(result.value))
    AzureLogger(enabled=is_azure_agent(env)).set_variable(TOPLEVEL_MODE_VARIABLE, str(result.value))


@app.command()
def plan(
    mode_text: str = typer.Option(
        ..., "--mode", help="Assumed TOPLEVEL_MODE: latest, skip or a version."
    ),
    main_dev: str = _MAIN_DEV_OPTION,
    release: str = _RELEASE_OPTION,
    repo: Path = _REPO_OPTION,
    config: Path | None = _CONFIG_OPTION,
) -> None:
    """Show which steps would run, without running anything."""
    params = resolve_params(main_dev=main_dev, release=release)
    parsed = ToplevelMode.parse(mode_text)
    if isinstance(parsed, Err):
        exit_with(parsed.error.message, code=ErrorCode.USER_ERROR)
    if params.is_main_dev != parsed.value.is_latest:
        exit_with(
            "mode 'latest' is resolved for main-dev updates and for nothing else",
            code=ErrorCode.USER_ERROR,
        )

    deploy_config = resolve_config(repo_root=repo.expanduser().resolve(), config_path=config)
    planned = plan_pipeline(params=params, config=deploy_config, mode=parsed.value)

    table = Table(title=f"{TOPLEVEL_MODE_VARIABLE}={parsed.value}")
    table.add_column("step")
    table.add_column("runs")
    table.add_column("reason", style="dim")
    for item in planned:
        table.add_row(
            item.step.display_name,
            "[green]yes[/green]" if item.runs else "[dim]no[/dim]",
            item.reason or "",
        )
    Console().print(table)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    del version


def main() -> None:
    app()
