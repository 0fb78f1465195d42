"""Toplevel release mode.

The mode decides what happens to outputs tied to the main project (the book,
the ArchLinux package):

- ``latest``: continuous deployment from the main branch; publish under the
  version code "latest".
- ``skip``: an RC update that does not release the main project; leave them
  alone.
- otherwise the new version of the main project; publish under that version.
"""

from __future__ import annotations

from tdeploy.core.result import Err, Ok, Result
from tdeploy.pipeline.model import DeployError, ToplevelMode, TriggerParams
from tdeploy.tools.cranko import Cranko


def resolve_toplevel_mode(
    *,
    params: TriggerParams,
    cranko: Cranko,
    project: str,
) -> Result[ToplevelMode, DeployError]:
    if params.is_main_dev:
        return Ok(ToplevelMode.latest())

    available = cranko.ensure_available()
    if isinstance(available, Err):
        return available

    released = cranko.if_released(project)
    if isinstance(released, Err):
        return released
    if not released.value:
        return Ok(ToplevelMode.skip())

    version = cranko.show_version(project)
    if isinstance(version, Err):
        return version
    return ToplevelMode.released(version.value)
