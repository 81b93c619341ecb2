"""JSON aliases and the ErrorTrace record.

An ErrorTrace is what a failed request leaves behind in spans and logs: a
message, an error code, optional details, and the stages the request had
reached when it failed.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

# Recursive slots stay Any so pydantic does not chase them
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]


class ErrorTrace(BaseModel):
    """Frozen failure record.

    >>> trace("socket hang up", code="SOCKET_HANG_UP").at("socket_connected").stage
    'socket_connected'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    message: str = Field(min_length=1)
    error_code: str | None = None
    details: str | None = Field(default=None, repr=False)
    stages: tuple[str, ...] = ()

    @computed_field
    @property
    def stage(self) -> str | None:
        return self.stages[-1] if self.stages else None

    def at(self, stage: str) -> ErrorTrace:
        """Copy with `stage` appended."""
        return self.model_copy(update={"stages": (*self.stages, stage)})

    def __str__(self) -> str:
        code = f" [{self.error_code}]" if self.error_code else ""
        where = f" (at {' > '.join(self.stages)})" if self.stages else ""
        return f"{self.message}{code}{where}"


def trace(message: str, *, code: str | None = None, details: str | None = None, stage: str = "") -> ErrorTrace:
    t = ErrorTrace(message=message, error_code=code, details=details)
    return t.at(stage) if stage else t


def trace_from_exc(exc: BaseException, *, operation: str = "", code: str | None = None) -> ErrorTrace:
    """ErrorTrace for an arbitrary exception; the type name stands in for an empty message."""
    return trace(str(exc) or type(exc).__name__, code=code, details=type(exc).__name__, stage=operation)
