"""Codecs: typed descriptors for JSON payloads.

A codec answers three questions about a payload type:

- `is_valid(value)`: does this value already satisfy the type, without coercion?
- `encode(value)`: turn a domain value into a JSON-compatible wire value.
- `decode(wire)`: turn a wire value into a domain value, or explain why not.

`TypeCodec` implements the protocol on top of a pydantic `TypeAdapter`, so
any type pydantic understands (models, `typing_extensions.TypedDict`, `Literal`, containers,
scalars) can describe a request or response payload.

Example:
    >>> from pydantic import BaseModel, ConfigDict
    >>> class Greeting(BaseModel):
    ...     model_config = ConfigDict(extra="allow")
    ...     hello: str
    >>> c = codec(Greeting)
    >>> c.is_valid({"hello": "world"})
    True
    >>> c.decode({"hello": 1}).is_err()
    True
    >>> c.encode({"hello": "world", "extra": 1})
    {'hello': 'world', 'extra': 1}
    >>> exact(Greeting).encode({"hello": "world", "extra": 1})
    {'hello': 'world'}

Excess fields follow the type's own config (pydantic's default
`extra="ignore"` strips them, `extra="allow"` keeps them) unless the codec
is exact, which always strips keys the type does not declare.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError
from typing_extensions import get_type_hints, is_typeddict

from typedhttp.foundation.errors import Err, JsonValue, Ok, Result

T = TypeVar("T")


class CodecIssue(BaseModel):
    """One structured decode diagnostic."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    loc: tuple[str | int, ...] = ()
    msg: str
    type: str

    def __str__(self) -> str:
        path = ".".join(str(p) for p in self.loc) or "<root>"
        return f"{path}: {self.msg} [{self.type}]"


@runtime_checkable
class Codec(Protocol[T]):
    """Protocol for payload codecs."""

    name: str

    def is_valid(self, value: object) -> bool: ...
    def encode(self, value: T) -> JsonValue: ...
    def decode(self, wire: object) -> Result[T, list[CodecIssue]]: ...


class TypeCodec(Generic[T]):
    """Codec backed by a pydantic TypeAdapter.

    Args:
        tp: Any type pydantic can validate
        name: Display name used in errors and logs (defaults to the type name)
        exact: Strip keys the type does not declare when encoding and decoding
    """

    __slots__ = ("name", "exact", "_type", "_adapter", "_declared")

    def __init__(self, tp: Any, *, name: str | None = None, exact: bool = False) -> None:
        self._type = tp
        self._adapter: TypeAdapter[T] = TypeAdapter(tp)
        self.name = name or _type_name(tp)
        self.exact = exact
        self._declared = _declared_keys(tp) if exact else None

    @property
    def type(self) -> Any:
        return self._type

    def is_valid(self, value: object) -> bool:
        """Strict check: `"7"` is not an int here, although decode would accept it."""
        try:
            self._adapter.validate_python(value, strict=True)
        except ValidationError:
            return False
        return True

    def encode(self, value: T) -> JsonValue:
        """Validate then dump to JSON-compatible python. Raises on invalid values."""
        return self._strip(self._adapter.dump_python(self._adapter.validate_python(value), mode="json", by_alias=True))

    def decode(self, wire: object) -> Result[T, list[CodecIssue]]:
        try:
            return Ok(self._adapter.validate_python(self._strip(wire)))
        except ValidationError as exc:
            return Err([
                CodecIssue(loc=tuple(e["loc"]), msg=e["msg"], type=e["type"])
                for e in exc.errors(include_url=False)
            ])

    def _strip(self, value: Any) -> Any:
        if self._declared is None or not isinstance(value, Mapping):
            return value
        return {k: v for k, v in value.items() if k in self._declared}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name}{', exact' if self.exact else ''})"


def codec(tp: Any, name: str | None = None) -> TypeCodec[Any]:
    """Codec whose excess-key handling follows the type's own config."""
    return TypeCodec(tp, name=name)


def exact(tp: Any, name: str | None = None) -> TypeCodec[Any]:
    """Codec that strips keys the type does not declare."""
    return TypeCodec(tp, name=name, exact=True)


# Passes any JSON value through untouched
ANY: TypeCodec[Any] = TypeCodec(Any, name="any")


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)


def _declared_keys(tp: Any) -> frozenset[str] | None:
    """Field names and aliases declared by a model or TypedDict, None for other types."""
    if isinstance(tp, type) and issubclass(tp, BaseModel):
        keys: set[str] = set()
        for name, info in tp.model_fields.items():
            keys.add(name)
            if info.alias:
                keys.add(info.alias)
            if isinstance(info.validation_alias, str):
                keys.add(info.validation_alias)
        return frozenset(keys)
    if is_typeddict(tp):
        return frozenset(get_type_hints(tp))
    return None
