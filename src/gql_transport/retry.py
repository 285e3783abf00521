"""
Retry policy contract.

The transport only supplies the mechanism: on every failed attempt it asks the
configured policy and acts on the answer. Limits, backoff and error selection
are the policy's business; the transport imposes no cap of its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Protocol, Union

from .models import GraphQLOperation, OutgoingRequest


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of a policy consultation.

    Attributes:
        retry: Resend the operation (True) or deliver the error (False)
        delay_sec: Pause before the next attempt, chosen by the policy
    """

    retry: bool
    delay_sec: float = 0.0

    def __post_init__(self):
        if self.delay_sec < 0:
            raise ValueError("delay_sec must be >= 0")

    @classmethod
    def retry_after(cls, delay_sec: float = 0.0) -> "RetryDecision":
        return cls(retry=True, delay_sec=delay_sec)

    @classmethod
    def give_up(cls) -> "RetryDecision":
        return cls(retry=False)

    @classmethod
    def coerce(cls, value: Union["RetryDecision", bool]) -> "RetryDecision":
        """Accept a bare boolean from simple policies."""
        if isinstance(value, RetryDecision):
            return value
        if isinstance(value, bool):
            return cls(retry=value)
        raise TypeError(f"RetryPolicy returned {type(value).__name__}, expected RetryDecision or bool")


RETRY = RetryDecision(retry=True)
GIVE_UP = RetryDecision(retry=False)

DecisionResult = Union[RetryDecision, bool]


class RetryPolicy(Protocol):
    """Decides whether a failed attempt should be sent again.

    ``error`` is either an ``httpx.RequestError`` (connection-level failure) or a
    GraphQLHTTPResponseError. ``request`` is the exact request that failed.
    The decision may involve I/O (e.g. refreshing a token), hence async.
    """

    def should_retry(
        self,
        operation: GraphQLOperation,
        request: OutgoingRequest,
        error: BaseException,
    ) -> Awaitable[DecisionResult]: ...
