"""
GraphQL HTTP Transport

Send/respond/retry pipeline for GraphQL clients: builds JSON POST requests,
classifies HTTP outcomes into a small error taxonomy and lets a pluggable
policy decide whether to resend a failed operation.

Usage:
    from gql_transport import HTTPNetworkTransport, Operation

    async with HTTPNetworkTransport("https://api.example.com/graphql") as transport:
        # Await the result
        response = await transport.execute(Operation("{ hero { name } }"))

        # Or fire and get a callback
        handle = transport.send(Operation("{ hero { name } }"), completion=on_done)
        handle.cancel()
"""

from .classifier import ResponseClassifier
from .errors import (
    ErrorKind,
    GraphQLHTTPResponseError,
    GraphQLTransportError,
    OperationIdentifierMissing,
)
from .models import GraphQLOperation, GraphQLResponse, Operation, OutgoingRequest
from .request_builder import RequestBuilder
from .retry import GIVE_UP, RETRY, RetryDecision, RetryPolicy
from .serialization import JSONSerializationFormat, Serializer
from .settings import TransportSettings, get_settings
from .transport import AttemptHandle, CallHandle, CallState, HTTPNetworkTransport

__version__ = "1.0.0"
__all__ = [
    # transport
    "HTTPNetworkTransport",
    "CallHandle",
    "AttemptHandle",
    "CallState",
    # pipeline pieces
    "RequestBuilder",
    "ResponseClassifier",
    "JSONSerializationFormat",
    "Serializer",
    # models
    "Operation",
    "GraphQLOperation",
    "OutgoingRequest",
    "GraphQLResponse",
    # retry
    "RetryPolicy",
    "RetryDecision",
    "RETRY",
    "GIVE_UP",
    # errors
    "GraphQLTransportError",
    "GraphQLHTTPResponseError",
    "OperationIdentifierMissing",
    "ErrorKind",
    # config
    "TransportSettings",
    "get_settings",
]
