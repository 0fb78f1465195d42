"""Tests for tdeploy.platform.process."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from tdeploy.core.result import Err, Ok
from tdeploy.platform.process import ProcessError, run, run_streaming

PY = sys.executable


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("git", "show"), returncode=128, stdout="", stderr="fatal")
        assert str(error) == "git show failed (exit 128)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("cranko", "github", "upload-artifacts", "--by-tag", "continuous"),
            returncode=1,
            stdout="",
            stderr="",
        )
        assert str(error) == "cranko github upload-artifacts ... failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "print('0.15.0')"], cwd=tmp_path)
        assert isinstance(result, Ok)
        assert result.value.strip() == "0.15.0"

    def test_exit_code_is_preserved(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "import sys; sys.exit(1)"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == 1

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = run(["definitely-not-a-tool-4711"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert result.error.stderr

    def test_env_is_passed_verbatim(self, tmp_path: Path) -> None:
        env = {"PATH": os.environ.get("PATH", ""), "DEPLOY_PROBE": "yes"}
        result = run(
            [PY, "-c", "import os; print(os.environ.get('DEPLOY_PROBE', 'no'))"],
            cwd=tmp_path,
            env=env,
        )
        assert isinstance(result, Ok)
        assert result.value.strip() == "yes"

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "import time; time.sleep(10)"], cwd=tmp_path, timeout=0.2)
        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr


class TestRunStreaming:
    def test_success(self, tmp_path: Path) -> None:
        assert run_streaming([PY, "-c", "pass"], cwd=tmp_path) == Ok(None)

    def test_failure(self, tmp_path: Path) -> None:
        result = run_streaming([PY, "-c", "import sys; sys.exit(3)"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == 3
