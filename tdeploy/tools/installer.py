"""Install the latest cranko release for this run.

cranko publishes a ``fetch-latest.sh`` script that downloads the right binary
into the current directory. We run it in a fresh temporary directory and put
that directory first on PATH for every later command.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from tdeploy.core.result import Err, Ok, Result
from tdeploy.output.azure import AzureLogger
from tdeploy.output.console import Style
from tdeploy.pipeline.model import DeployError
from tdeploy.tools.commands import CommandRunner
from tdeploy.tools.cranko import CRANKO
from tdeploy.tools.http import HttpClient

FETCH_SCRIPT_NAME = "fetch-latest.sh"


def _make_install_dir() -> Path:
    return Path(tempfile.mkdtemp(prefix="cranko."))


def install_cranko(
    *,
    runner: CommandRunner,
    http: HttpClient,
    fetch_url: str,
    azure: AzureLogger,
) -> Result[Path, DeployError]:
    """Download and run the cranko fetch script.

    Returns:
        Ok(install_dir) once ``cranko`` is present there and on PATH. A dry
        run creates nothing and returns a placeholder path.
    """
    runner.console.print(f"fetching {fetch_url}", Style.DIM)
    if runner.dry_run:
        placeholder = Path(tempfile.gettempdir()) / "cranko.XXXXXX"
        runner.console.command(["sh", FETCH_SCRIPT_NAME])
        runner.console.print(f"(dry-run) not executed in {placeholder}", Style.DIM)
        return Ok(placeholder)

    script = http.get_text(fetch_url)
    if isinstance(script, Err):
        return Err(
            DeployError(
                kind="download_failed",
                message="failed to download the cranko installer",
                hint=str(script.error),
            )
        )

    install_dir = _make_install_dir()
    script_path = install_dir / FETCH_SCRIPT_NAME

    try:
        script_path.write_text(script.value, encoding="utf-8")
    except OSError as e:
        return Err(DeployError(kind="io_failed", message=f"cannot write {script_path}: {e}"))

    in_dir = CommandRunner(cwd=install_dir, console=runner.console, env=runner.env)
    result = in_dir.execute(["sh", FETCH_SCRIPT_NAME])
    if isinstance(result, Err):
        return result

    if not (install_dir / CRANKO).is_file():
        return Err(
            DeployError(
                kind="tool_missing",
                message="cranko installer finished without producing a binary",
                hint=str(install_dir),
            )
        )

    runner.prepend_path(install_dir)
    azure.prepend_path(str(install_dir))
    return Ok(install_dir)
