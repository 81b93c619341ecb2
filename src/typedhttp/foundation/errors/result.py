"""Decode outcomes.

A codec's `decode` returns `Ok(value)` or `Err(issues)` instead of raising,
and the caller picks how a failure surfaces. The executor turns `Err` into a
`ResponseDecodeError`:

    >>> match codec(Webtask).decode(wire):
    ...     case Ok(webtask): ...
    ...     case Err(issues): ...
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise RuntimeError(f"unwrap_err() on {self!r}")

    def unwrap_or_else(self, f: Callable[[object], T]) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise RuntimeError(f"unwrap() on {self!r}")

    def unwrap_err(self) -> E:
        return self.error

    def unwrap_or_else(self, f: Callable[[E], T]) -> T:
        """Value computed from the error; `f` may raise instead."""
        return f(self.error)


Result = Union[Ok[T], Err[E]]
