"""Toplevel mode resolution across all trigger states."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from tdeploy.core.result import Err, Ok
from tdeploy.output.console import MockConsole
from tdeploy.pipeline.mode import resolve_toplevel_mode
from tdeploy.pipeline.model import ToplevelMode, TriggerParams
from tdeploy.tools import commands as commands_mod
from tdeploy.tools.commands import CommandRunner
from tdeploy.tools.cranko import Cranko

if TYPE_CHECKING:
    from conftest import FakeProcesses


def _cranko(tmp_path: Path) -> Cranko:
    return Cranko(CommandRunner(cwd=tmp_path, console=MockConsole(), env={"PATH": "/usr/bin"}))


@pytest.mark.parametrize("is_release", [False, True])
def test_main_dev_is_latest_without_asking_cranko(
    fake_proc: FakeProcesses, tmp_path: Path, is_release: bool
) -> None:
    fake_proc.released("0.15.0")

    result = resolve_toplevel_mode(
        params=TriggerParams(is_main_dev=True, is_release=is_release),
        cranko=_cranko(tmp_path),
        project="tectonic",
    )

    assert result == Ok(ToplevelMode.latest())
    assert fake_proc.calls == []


@pytest.mark.parametrize("is_release", [False, True])
def test_no_release_is_skip(fake_proc: FakeProcesses, tmp_path: Path, is_release: bool) -> None:
    fake_proc.not_released()

    result = resolve_toplevel_mode(
        params=TriggerParams(is_main_dev=False, is_release=is_release),
        cranko=_cranko(tmp_path),
        project="tectonic",
    )

    assert result == Ok(ToplevelMode.skip())
    assert fake_proc.commands_starting("cranko", "show", "version") == []


@pytest.mark.parametrize("is_release", [False, True])
def test_release_is_the_version_string(
    fake_proc: FakeProcesses, tmp_path: Path, is_release: bool
) -> None:
    fake_proc.released("0.15.0")

    result = resolve_toplevel_mode(
        params=TriggerParams(is_main_dev=False, is_release=is_release),
        cranko=_cranko(tmp_path),
        project="tectonic",
    )

    assert result == Ok(ToplevelMode("0.15.0"))
    assert fake_proc.calls == [
        ["cranko", "show", "if-released", "--exit-code", "tectonic"],
        ["cranko", "show", "version", "tectonic"],
    ]


def test_query_failure_is_not_treated_as_skip(fake_proc: FakeProcesses, tmp_path: Path) -> None:
    fake_proc.fail(
        ["cranko", "show", "if-released"], returncode=2, stderr="error: no such project"
    )

    result = resolve_toplevel_mode(
        params=TriggerParams(is_main_dev=False, is_release=True),
        cranko=_cranko(tmp_path),
        project="tectonic",
    )

    assert isinstance(result, Err)
    assert result.error.kind == "command_failed"
    assert result.error.hint == "error: no such project"


def test_missing_cranko(
    fake_proc: FakeProcesses, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(commands_mod, "which", lambda tool, path=None: None)

    result = resolve_toplevel_mode(
        params=TriggerParams(is_main_dev=False, is_release=True),
        cranko=_cranko(tmp_path),
        project="tectonic",
    )

    assert isinstance(result, Err)
    assert result.error.kind == "tool_missing"
    assert fake_proc.calls == []
