"""Webtask client: one typed request function wrapped in a small API.

    >>> client = WebtaskClient("http://localhost:8721")
    >>> task = await client.put_webtask("sandbox", "hello", {"code": "// abcd", "meta": {}, "secrets": {}})
    >>> task.name
    'hello'
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from typedhttp.client import HttpMethod, RequestFunction, create_request_function
from typedhttp.foundation.codecs import codec, exact
from typedhttp.foundation.errors import HttpClientError

DEFAULT_BASE_URL = "https://sandbox.auth0-extend.com"


class PutWebtaskRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str = Field(pattern="abcd")
    meta: dict[str, str]
    secrets: dict[str, str]


class PutWebtaskResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    meta: dict[str, str]


class UnexpectedStatusError(HttpClientError):
    """The webtask API answered with a status other than 200."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"Unexpected response: {status_code}")


class WebtaskClient:
    __slots__ = ("_put_webtask",)

    def __init__(self, base_url: str = DEFAULT_BASE_URL, **options: Any) -> None:
        self._put_webtask: RequestFunction[PutWebtaskRequest, PutWebtaskResponse] = create_request_function(
            base_url=base_url,
            request_codec=exact(PutWebtaskRequest),
            response_codec=codec(PutWebtaskResponse),
            **options,
        )

    async def put_webtask(
        self, container: str, name: str, payload: PutWebtaskRequest | dict[str, Any],
    ) -> PutWebtaskResponse:
        """Create or replace the webtask `name` in `container`.

        Raises:
            InvalidPayloadError: payload does not satisfy PutWebtaskRequest
            UnexpectedStatusError: any status other than 200
        """
        result = await self._put_webtask(HttpMethod.PUT, f"/{container}/{name}", payload=payload)
        if result.status_code != 200:
            raise UnexpectedStatusError(result.status_code)
        return result.payload
