"""
Custom exceptions for the GraphQL HTTP transport.

Connection-level failures (``httpx.RequestError`` and friends) are not wrapped
here; they reach the retry policy and the caller unchanged.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import httpx


class GraphQLTransportError(Exception):
    """Base error for the transport."""

    pass


class OperationIdentifierMissing(GraphQLTransportError):
    """Persisted-identifier mode was requested for an operation without one.

    Raised while building the request, before any network call. Never retried.
    """

    pass


class ErrorKind(str, Enum):
    """Why an HTTP response was rejected."""

    ERROR_RESPONSE = "error_response"  # non-2xx status
    INVALID_RESPONSE = "invalid_response"  # 2xx but no JSON object body

    @property
    def description(self) -> str:
        if self is ErrorKind.ERROR_RESPONSE:
            return "Received error response"
        return "Received invalid response"


class GraphQLHTTPResponseError(GraphQLTransportError):
    """A transport-level, HTTP-specific error.

    Attributes:
        kind: ERROR_RESPONSE or INVALID_RESPONSE
        body: Raw response bytes, or None when the server sent nothing
        response: The ``httpx.Response`` as received from the server
    """

    def __init__(
        self,
        *,
        response: httpx.Response,
        kind: ErrorKind,
        body: Optional[bytes] = None,
    ) -> None:
        self.response = response
        self.kind = kind
        self.body = body
        super().__init__(self.description)

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    @property
    def body_description(self) -> str:
        """Body decoded with the declared charset (UTF-8 if none)."""
        if self.body is None:
            return "Empty response body"
        encoding = self.response.charset_encoding or "utf-8"
        try:
            return self.body.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            return "Unreadable response body"

    @property
    def description(self) -> str:
        return (
            f"{self.kind.description} "
            f"({self.status_code} {self.response.reason_phrase or 'Unknown'}): {self.body_description}"
        )

    def __repr__(self) -> str:
        return (
            f"GraphQLHTTPResponseError(kind={self.kind.value!r}, "
            f"status_code={self.status_code}, body={self.body!r})"
        )
