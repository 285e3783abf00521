"""
Response classification.

Turns one attempt's ``httpx.Response`` into a GraphQLResponse or raises
GraphQLHTTPResponseError. Checks run in order:

1. status outside 200-299   -> ERROR_RESPONSE (body kept if any)
2. empty body               -> INVALID_RESPONSE (no body)
3. body undecodable or not a JSON object -> INVALID_RESPONSE (body kept)
4. otherwise                -> GraphQLResponse(operation, decoded object)

Connection failures never get here; the transport passes them through as-is.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

import httpx
from loguru import logger

from .errors import ErrorKind, GraphQLHTTPResponseError
from .models import GraphQLOperation, GraphQLResponse
from .serialization import JSONSerializationFormat, Serializer


def is_successful(status_code: int) -> bool:
    return 200 <= status_code < 300


class ResponseClassifier:
    def __init__(self, serializer: Optional[Serializer] = None):
        self.serializer = serializer or JSONSerializationFormat()

    def classify(self, operation: GraphQLOperation, response: httpx.Response) -> GraphQLResponse:
        data = response.content or None

        if not is_successful(response.status_code):
            logger.debug(f"Classified HTTP {response.status_code} as error response")
            raise GraphQLHTTPResponseError(
                response=response, kind=ErrorKind.ERROR_RESPONSE, body=data
            )

        if data is None:
            logger.debug(f"Classified HTTP {response.status_code} with empty body as invalid")
            raise GraphQLHTTPResponseError(response=response, kind=ErrorKind.INVALID_RESPONSE)

        # whatever a pluggable serializer raises counts as a decode failure
        try:
            body = self.serializer.deserialize(data)
        except Exception as exc:
            logger.debug(f"Response body failed to decode: {type(exc).__name__}: {exc}")
            raise GraphQLHTTPResponseError(
                response=response, kind=ErrorKind.INVALID_RESPONSE, body=data
            ) from exc

        if not isinstance(body, Mapping):
            logger.debug(f"Response body is {type(body).__name__}, expected JSON object")
            raise GraphQLHTTPResponseError(
                response=response, kind=ErrorKind.INVALID_RESPONSE, body=data
            )

        return GraphQLResponse(operation=operation, body=dict(body))
