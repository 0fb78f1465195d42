from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from tdeploy.core.result import Err, Ok, Result

DeployErrorKind = Literal[
    "invalid_input",
    "config_invalid",
    "tool_missing",
    "credential_missing",
    "command_failed",
    "query_failed",
    "mode_state",
    "artifacts_missing",
    "download_failed",
    "io_failed",
]


@dataclass(frozen=True, slots=True)
class DeployError:
    kind: DeployErrorKind
    message: str
    hint: str | None = None


_TRUE = frozenset({"true", "1", "yes"})
_FALSE = frozenset({"false", "0", "no"})


def parse_bool(text: str, *, name: str) -> Result[bool, DeployError]:
    """Parse a pipeline parameter.

    Azure stringifies boolean template parameters as ``True``/``False``.
    """
    value = text.strip().lower()
    if value in _TRUE:
        return Ok(True)
    if value in _FALSE:
        return Ok(False)
    return Err(
        DeployError(
            kind="invalid_input",
            message=f"invalid boolean for {name}: {text!r}",
            hint="expected true/false",
        )
    )


@dataclass(frozen=True, slots=True)
class TriggerParams:
    """The two pipeline parameters.

    is_main_dev: push to the main development branch (continuous deployment).
    is_release: push to the `rc` branch (official release machinery).
    """

    is_main_dev: bool = False
    is_release: bool = False

    def describe(self) -> str:
        # Same rendering as the Azure boolean stringification.
        return f"{self.is_main_dev}, {self.is_release}"


_LATEST = "latest"
_SKIP = "skip"


@dataclass(frozen=True, slots=True)
class ToplevelMode:
    """Closed three-way domain: ``latest``, ``skip`` or a released version."""

    value: str

    @classmethod
    def latest(cls) -> ToplevelMode:
        return cls(_LATEST)

    @classmethod
    def skip(cls) -> ToplevelMode:
        return cls(_SKIP)

    @classmethod
    def released(cls, version: str) -> Result[ToplevelMode, DeployError]:
        v = version.strip()
        if not v:
            return Err(DeployError(kind="query_failed", message="released version is empty"))
        if v in (_LATEST, _SKIP) or any(c.isspace() for c in v):
            return Err(
                DeployError(
                    kind="query_failed",
                    message=f"released version is not a version string: {v!r}",
                )
            )
        return Ok(cls(v))

    @classmethod
    def parse(cls, text: str) -> Result[ToplevelMode, DeployError]:
        value = text.strip()
        if value == _LATEST:
            return Ok(cls.latest())
        if value == _SKIP:
            return Ok(cls.skip())
        result = cls.released(value)
        if isinstance(result, Err):
            return Err(DeployError(kind="invalid_input", message=result.error.message))
        return result

    @property
    def is_latest(self) -> bool:
        return self.value == _LATEST

    @property
    def is_skip(self) -> bool:
        return self.value == _SKIP

    @property
    def version(self) -> str | None:
        if self.is_latest or self.is_skip:
            return None
        return self.value

    def __str__(self) -> str:
        return self.value
