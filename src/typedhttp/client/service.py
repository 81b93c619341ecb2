"""Manifest dispatcher: named remote operations as async callables.

A `ServiceManifest` declares a base URL and a set of operations. Each
operation names an HTTP method, a path template with `{placeholders}`, and
the codecs for its request body and response payload:

    >>> manifest = ServiceManifest(
    ...     base_url="https://sandbox.example.com",
    ...     operations={
    ...         "put_webtask": Operation(
    ...             method="PUT",
    ...             path_template="/{container}/{name}",
    ...             input_codec=exact(PutWebtask),
    ...             output_codec=codec(Webtask),
    ...         ),
    ...     },
    ... )
    >>> client = create_service_client(manifest)
    >>> response = await client.put_webtask(
    ...     params={"container": "c", "name": "n"}, data={"code": "module.exports = ..."},
    ... )
    >>> response.payload
    Webtask(container='c', name='n', meta={})

The callables are generated once, when the client is built, and stored on
the instance under the operation names.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from typedhttp import __version__
from typedhttp.foundation.codecs import Codec
from typedhttp.foundation.errors import EncodeError, InvalidPayloadError
from typedhttp.io.streaming import encode_json
from typedhttp.runtime.observability import LogSink, SpanTracer
from typedhttp.transport import Agent

from .executor import DEFAULT_HEADERS, HttpMethod, RequestFunction, Response, create_request_function, merge_headers

USER_AGENT = f"typedhttp/{__version__}"

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


class OperationArguments(BaseModel):
    """Path parameters and request body of one operation call."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    params: dict[str, Any] = Field(default_factory=dict)
    data: Any = None

    @field_validator("params", mode="before")
    @classmethod
    def _none_is_empty(cls, v: object) -> object:
        return {} if v is None else v


ArgumentMapper = Callable[..., Any]


class Operation(BaseModel):
    """One remote call. Immutable once declared.

    Attributes:
        method: HTTP method (strings are upper-cased)
        path_template: Path with `{name}` placeholders filled from `params`
        input_codec: Gates and encodes the request body
        output_codec: Decodes the response payload
        path_param_codec: Documents the expected params; not enforced on substitution
        map_arguments: Turns a caller-chosen argument shape into params and data
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    method: HttpMethod
    path_template: str
    input_codec: Codec
    output_codec: Codec
    path_param_codec: Codec | None = None
    map_arguments: ArgumentMapper | None = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @computed_field
    @property
    def placeholders(self) -> tuple[str, ...]:
        return tuple(_PLACEHOLDER.findall(self.path_template))

    def resolve_path(self, params: Mapping[str, Any] | None) -> str:
        """Substitute every placeholder with `str(params.get(name))`; missing names become "None"."""
        values = params or {}
        return _PLACEHOLDER.sub(lambda m: str(values.get(m.group(1))), self.path_template)

    def arguments(self, *args: Any, **kwargs: Any) -> OperationArguments:
        """Normalise a call's arguments into OperationArguments."""
        if self.map_arguments is not None:
            return _as_arguments(self.map_arguments(*args, **kwargs))
        if args:
            if len(args) > 1 or kwargs:
                raise TypeError("Pass either one arguments mapping or params=/data= keywords")
            return _as_arguments(args[0])
        return OperationArguments(**kwargs)


def _as_arguments(value: Mapping[str, Any] | OperationArguments) -> OperationArguments:
    return value if isinstance(value, OperationArguments) else OperationArguments.model_validate(dict(value))


class ServiceManifest(BaseModel):
    """Base URL plus named operations. The operations mapping is read-only once validated."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    base_url: str
    operations: Mapping[str, Operation]

    @field_validator("operations")
    @classmethod
    def _freeze(cls, v: Mapping[str, Operation]) -> Mapping[str, Operation]:
        for name in v:
            if not name or name.startswith("_"):
                raise ValueError(f"Invalid operation name {name!r}: must be non-empty and not start with '_'")
        return MappingProxyType(dict(v))


OperationFunction = Callable[..., Any]


class ServiceClient:
    """Client generated from a ServiceManifest.

    Each operation is an async callable attribute; operation names win over
    any method of the same name. `client[name]` and `client.operations` give
    mapping access.
    """

    def __init__(
        self,
        manifest: ServiceManifest,
        *,
        agent: Agent | None = None,
        headers: Mapping[str, str] | None = None,
        logger: LogSink | None = None,
        tracer: SpanTracer | None = None,
    ) -> None:
        self.manifest = self._manifest = manifest
        base = create_request_function(
            agent=agent,
            base_url=manifest.base_url,
            headers=merge_headers(DEFAULT_HEADERS, {"User-Agent": USER_AGENT}, headers),
            logger=logger,
            tracer=tracer,
        )
        self._functions: dict[str, RequestFunction[Any, Any]] = {
            name: base.with_defaults(response_codec=operation.output_codec)
            for name, operation in manifest.operations.items()
        }
        self._operations: Mapping[str, OperationFunction] = MappingProxyType(
            {name: self._bind(name, operation) for name, operation in manifest.operations.items()}
        )
        self.operations = self._operations
        # Instance attributes shadow methods of the same name
        self.__dict__.update(self._operations)

    def _bind(self, name: str, operation: Operation) -> OperationFunction:
        async def call(*args: Any, **kwargs: Any) -> Response[Any]:
            return await self._execute(name, operation.arguments(*args, **kwargs))

        call.__name__ = call.__qualname__ = name
        call.__doc__ = f"{operation.method} {operation.path_template}"
        return call

    async def execute_operation(
        self, name: str, arguments: OperationArguments | Mapping[str, Any],
    ) -> Response[Any]:
        """Run operation `name` with explicit params and data.

        Raises:
            KeyError: no operation of that name
            InvalidPayloadError: data fails the operation's input codec (no I/O happens)
            EncodeError: data could not be encoded as JSON
            ResponseJsonError / ResponseDecodeError: the response could not be decoded
        """
        return await self._execute(name, _as_arguments(arguments))

    async def _execute(self, name: str, args: OperationArguments) -> Response[Any]:
        operation = self._manifest.operations[name]
        if not operation.input_codec.is_valid(args.data):
            raise InvalidPayloadError(f"Invalid data for operation '{name}'")
        body: bytes | None = None
        if args.data is not None:
            try:
                body = encode_json(operation.input_codec.encode(args.data))
            except Exception as exc:
                raise EncodeError(exc) from exc
        return await self._functions[name].send(operation.method, operation.resolve_path(args.params), body=body)

    def __getitem__(self, name: str) -> OperationFunction:
        return self._operations[name]

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def __repr__(self) -> str:
        return f"ServiceClient({self._manifest.base_url}, operations={list(self._operations)})"


def create_service_client(
    manifest: ServiceManifest,
    *,
    agent: Agent | None = None,
    headers: Mapping[str, str] | None = None,
    logger: LogSink | None = None,
    tracer: SpanTracer | None = None,
) -> ServiceClient:
    return ServiceClient(manifest, agent=agent, headers=headers, logger=logger, tracer=tracer)
