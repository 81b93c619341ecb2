"""Worked examples built on typedhttp."""

from .webtask import PutWebtaskRequest, PutWebtaskResponse, UnexpectedStatusError, WebtaskClient

__all__ = ["WebtaskClient", "PutWebtaskRequest", "PutWebtaskResponse", "UnexpectedStatusError"]
