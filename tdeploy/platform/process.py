"""Subprocess execution with Result-based error handling.

Two flavours are provided:

- ``run`` captures stdout for queries (``cranko show version``, ``git rev-parse``).
- ``run_streaming`` lets the tool write straight to the CI log, the way a
  ``bash`` step would, and only reports the exit status.

Neither raises: a missing executable or a timeout is reported as a
``ProcessError`` with ``returncode == -1``.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from tdeploy.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run", "run_streaming"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that could not be started or exited non-zero.

    ``returncode`` is -1 if the process never ran or was killed on timeout.
    For streamed commands ``stdout`` and ``stderr`` are empty since the output
    already went to the log.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        shown = " ".join(self.command[:3]) + (" ..." if len(self.command) > 3 else "")
        return f"{shown} failed (exit {self.returncode})"


def _invoke(
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str] | None,
    timeout: float | None,
    capture: bool,
) -> Result[str, ProcessError]:
    argv = tuple(cmd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            capture_output=capture,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return Err(ProcessError(argv, -1, partial, f"Command timed out after {timeout}s"))
    except OSError as e:
        return Err(ProcessError(argv, -1, "", str(e)))

    stdout = proc.stdout or ""
    if proc.returncode != 0:
        return Err(ProcessError(argv, proc.returncode, stdout, proc.stderr or ""))
    return Ok(stdout)


def run(
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return its stdout.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Full environment for the child (inherits ours if None).
        timeout: Maximum seconds to wait (None for no limit).
    """
    return _invoke(cmd, cwd, env, timeout, capture=True)


def run_streaming(
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[None, ProcessError]:
    """Execute a command with output going to our stdout/stderr."""
    result = _invoke(cmd, cwd, env, timeout, capture=False)
    if isinstance(result, Err):
        return result
    return Ok(None)
