"""Result type used for every fallible operation in the pipeline.

Pipeline steps never raise across module seams. Each operation returns either
``Ok(value)`` or ``Err(error)`` and the caller decides whether to abort:

    match cranko.show_version("tectonic"):
        case Ok(version):
            console.info(f"released {version}")
        case Err(error):
            return Err(error)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeGuard, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def map_err(self, f: Callable[[E], F]) -> Ok[T]:
        del f
        return self

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Translate the error, e.g. a ProcessError into a DeployError."""
        return Err(f(self.error))

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Union[Ok[T], Err[E]]


def is_ok(result: Result[T, E]) -> TypeGuard[Ok[T]]:
    return isinstance(result, Ok)


def is_err(result: Result[T, E]) -> TypeGuard[Err[E]]:
    return isinstance(result, Err)
