from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from loguru import logger

from .errors import OperationIdentifierMissing
from .models import GraphQLOperation, OutgoingRequest
from .serialization import JSONSerializationFormat, Serializer

CONTENT_TYPE = "application/json"


class RequestBuilder:
    """Builds the POST request for an operation.

    Pure construction: a new OutgoingRequest is returned on every call so
    retries pick up whatever the operation's variables are at that moment.
    """

    def __init__(
        self,
        url: str,
        *,
        serializer: Optional[Serializer] = None,
        send_operation_identifiers: bool = False,
        headers: Optional[Mapping[str, str]] = None,
    ):
        self.url = url
        self.serializer = serializer or JSONSerializationFormat()
        self.send_operation_identifiers = send_operation_identifiers
        self._headers = {k: v for k, v in (headers or {}).items() if k.lower() != "content-type"}

    def request_body(self, operation: GraphQLOperation) -> Dict[str, Any]:
        variables = dict(operation.variables or {})
        if self.send_operation_identifiers:
            identifier = operation.operation_identifier
            if identifier is None:
                raise OperationIdentifierMissing(
                    "send_operation_identifiers is enabled but the operation has no "
                    "operation_identifier; generate operations with persisted query ids"
                )
            return {"id": identifier, "variables": variables}
        return {"query": operation.query_document, "variables": variables}

    def build(self, operation: GraphQLOperation) -> OutgoingRequest:
        # serializer errors propagate: they mean a broken serializer, not a network condition
        body = self.serializer.serialize(self.request_body(operation))
        headers = {**self._headers, "Content-Type": CONTENT_TYPE}
        logger.debug(f"Built request: POST {self.url} ({len(body)} bytes)")
        return OutgoingRequest(url=self.url, method="POST", headers=headers, body=body)
