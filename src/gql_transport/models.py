"""
Value types flowing through the transport.

Operations come from the caller, requests are built fresh per attempt and
responses are handed back untouched; the transport keeps none of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

JSONObject = Dict[str, Any]


class GraphQLOperation(Protocol):
    """Read-only view of a query/mutation the transport can send."""

    @property
    def query_document(self) -> str: ...

    @property
    def variables(self) -> Mapping[str, Any]: ...

    @property
    def operation_identifier(self) -> Optional[str]: ...


@dataclass(frozen=True)
class Operation:
    """Plain GraphQL operation: document text, variables and optional persisted id."""

    query_document: str
    variables: Mapping[str, Any] = field(default_factory=dict)
    operation_identifier: Optional[str] = None


@dataclass(frozen=True)
class OutgoingRequest:
    """Immutable wire request for a single attempt."""

    url: str
    method: str
    headers: Mapping[str, str]
    body: bytes

    def to_httpx(self) -> httpx.Request:
        return httpx.Request(self.method, self.url, headers=dict(self.headers), content=self.body)


@dataclass(frozen=True)
class GraphQLResponse:
    """Decoded JSON object body associated with the operation that produced it.

    The body is not validated for ``data``/``errors``; that belongs to the caller.
    """

    operation: Any
    body: JSONObject
