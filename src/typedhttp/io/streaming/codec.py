"""JSON text codec for request and response bodies.

orjson is a core dependency; there is no fallback to the stdlib json module.

Usage:
    >>> from typedhttp.io.streaming import encode_json, decode_json
    >>> encode_json({"hello": "world"})
    b'{"hello":"world"}'
    >>> decode_json(b'{"hello":"world"}')
    {'hello': 'world'}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import orjson

if TYPE_CHECKING:
    from typedhttp.foundation.errors import JsonValue

CONTENT_TYPE = "application/json; charset=utf-8"

_DUMP_OPTIONS = orjson.OPT_UTC_Z

# Raised by decode_json on malformed input (a ValueError subclass)
JSONDecodeError = orjson.JSONDecodeError


def encode_json(data: JsonValue) -> bytes:
    """Encode to UTF-8 JSON bytes. Raises orjson.JSONEncodeError (a TypeError)."""
    return orjson.dumps(data, option=_DUMP_OPTIONS)


def encode_json_str(data: JsonValue) -> str:
    return orjson.dumps(data, option=_DUMP_OPTIONS).decode()


def decode_json(data: bytes | bytearray | memoryview | str) -> JsonValue:
    """Decode JSON bytes or text. Raises JSONDecodeError."""
    return orjson.loads(data)
