from __future__ import annotations

from pathlib import Path

from tdeploy.core.result import Err, Ok, Result
from tdeploy.pipeline.model import DeployError


def _is_hidden(path: Path, base: Path) -> bool:
    # Shell globs never match dotfiles such as .gitkeep or .DS_Store.
    return any(part.startswith(".") for part in path.relative_to(base).parts)


def collect_artifacts(
    *,
    pipeline_workspace: Path,
    patterns: tuple[str, ...],
) -> Result[list[Path], DeployError]:
    """Expand artifact globs under the pipeline workspace.

    Each pattern must match at least one file. Hidden files and files in
    hidden directories are ignored, as in a shell glob. Matches are sorted
    per pattern and patterns keep their configured order.
    """
    out: list[Path] = []
    missing: list[str] = []
    for pattern in patterns:
        matches = sorted(
            p
            for p in pipeline_workspace.glob(pattern)
            if p.is_file() and not _is_hidden(p, pipeline_workspace)
        )
        if not matches:
            missing.append(pattern)
            continue
        for p in matches:
            if p not in out:
                out.append(p)

    if missing:
        return Err(
            DeployError(
                kind="artifacts_missing",
                message=f"no artifacts match: {', '.join(missing)}",
                hint=f"searched in {pipeline_workspace}",
            )
        )
    return Ok(out)
