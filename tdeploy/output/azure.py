"""Azure Pipelines logging commands.

The agent scans stdout for ``##vso[...]`` lines. They are only meaningful (and
only emitted) when running on an Azure agent, which sets ``TF_BUILD``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

import typer

__all__ = [
    "AzureLogger",
    "is_azure_agent",
    "prepend_path_command",
    "set_variable_command",
]


def is_azure_agent(env: Mapping[str, str]) -> bool:
    return env.get("TF_BUILD", "").strip().lower() == "true"


def _escape(value: str) -> str:
    # Values must stay on one line for the agent to parse them.
    return value.replace("%", "%AZP25").replace("\r", "%0D").replace("\n", "%0A")


def set_variable_command(name: str, value: str) -> str:
    return f"##vso[task.setvariable variable={name};]{_escape(value)}"


def prepend_path_command(path: str) -> str:
    return f"##vso[task.prependpath]{_escape(path)}"


class AzureLogger:
    """Writes logging commands to stdout when enabled."""

    def __init__(self, *, enabled: bool, emit: Callable[[str], None] | None = None) -> None:
        self.enabled = enabled
        self._emit = emit or typer.echo

    def set_variable(self, name: str, value: str) -> None:
        if self.enabled:
            self._emit(set_variable_command(name, value))

    def prepend_path(self, path: str) -> None:
        if self.enabled:
            self._emit(prepend_path_command(path))
