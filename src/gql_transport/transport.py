"""
HTTP network transport.

Sends GraphQL operations as JSON POST requests over a shared
``httpx.AsyncClient``, classifies each response, and on failure lets an
optional RetryPolicy decide whether to send the operation again.

One ``send`` call is one logical call chain: the first attempt plus every
retry it spawns. The chain runs as a single asyncio task driving an explicit
loop; attempts are strictly sequential and the caller sees exactly one
outcome (or none, if the chain was cancelled).

Example:
    async with HTTPNetworkTransport("https://api.example.com/graphql") as transport:
        response = await transport.execute(Operation("{ hero { name } }"))
        print(response.body["data"])
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from functools import partial
from typing import Callable, Mapping, Optional, Union

import httpx
from loguru import logger

from .classifier import ResponseClassifier
from .errors import GraphQLHTTPResponseError
from .metrics import ATTEMPT_LATENCY_MS, ATTEMPTS_TOTAL, CALLS_TOTAL, RETRIES_TOTAL
from .models import GraphQLOperation, GraphQLResponse, OutgoingRequest
from .request_builder import RequestBuilder
from .retry import GIVE_UP, RetryDecision, RetryPolicy
from .serialization import JSONSerializationFormat, Serializer
from .settings import TransportSettings, get_settings

Completion = Callable[[Optional[GraphQLResponse], Optional[BaseException]], None]


class CallState(str, Enum):
    """Lifecycle of a logical call chain."""

    SENT = "sent"  # attempt in flight
    CLASSIFYING = "classifying"  # outcome received
    RETRYING = "retrying"  # policy consulted / retry pending
    DELIVERED = "delivered"  # success or error handed to the caller
    CANCELLED = "cancelled"  # nothing will ever be delivered


class AttemptHandle:
    """Cancellation token for one attempt.

    Cancelling works only while the attempt is in flight; it then stops the
    whole chain, since the attempt's outcome must never reach the classifier
    or the policy. Once the outcome has been received this is a no-op, so a
    retry the policy already asked for still goes ahead.
    """

    def __init__(self, chain: "_CallChain", number: int, request: OutgoingRequest):
        self._chain = chain
        self.number = number
        self.request = request

    @property
    def in_flight(self) -> bool:
        return self._chain.current is self and self._chain.state is CallState.SENT

    def cancel(self) -> bool:
        if not self.in_flight:
            logger.debug(f"Attempt {self.number} is no longer in flight; cancel ignored")
            return False
        return self._chain.cancel()


class _CallChain:
    """Per-call state: attempt count, last error, current attempt and task."""

    def __init__(self, operation: GraphQLOperation):
        self.operation = operation
        self.state = CallState.SENT
        self.attempts = 0
        self.last_error: Optional[BaseException] = None
        self.current: Optional[AttemptHandle] = None
        self.task: Optional[asyncio.Task] = None
        self.cancel_requested = False

    def begin_attempt(self, request: OutgoingRequest) -> AttemptHandle:
        self.attempts += 1
        self.current = AttemptHandle(self, self.attempts, request)
        self.state = CallState.SENT
        return self.current

    def cancel(self) -> bool:
        if self.cancel_requested or self.state in (CallState.DELIVERED, CallState.CANCELLED):
            return False
        if self.task is not None and self.task.done():
            return False
        self.cancel_requested = True
        if self.task is not None:
            self.task.cancel()
        logger.debug(f"Call chain cancelled during attempt {self.attempts} ({self.state.value})")
        return True


class CallHandle:
    """Handle returned by ``send``; cancels the whole call chain.

    Awaiting the handle yields the GraphQLResponse or raises the final error.
    """

    def __init__(self, chain: _CallChain):
        self._chain = chain

    @property
    def attempt(self) -> AttemptHandle:
        """Most recently issued attempt."""
        assert self._chain.current is not None
        return self._chain.current

    @property
    def attempts(self) -> int:
        return self._chain.attempts

    @property
    def state(self) -> CallState:
        return self._chain.state

    @property
    def last_error(self) -> Optional[BaseException]:
        return self._chain.last_error

    def cancel(self) -> bool:
        return self._chain.cancel()

    def cancelled(self) -> bool:
        return self._chain.cancel_requested or bool(self._chain.task and self._chain.task.cancelled())

    def done(self) -> bool:
        return bool(self._chain.task and self._chain.task.done())

    def __await__(self):
        assert self._chain.task is not None
        return self._chain.task.__await__()


class HTTPNetworkTransport:
    """Network transport posting GraphQL operations to a single endpoint.

    Args:
        url: GraphQL server endpoint
        client: Shared ``httpx.AsyncClient``; one is created (and owned) if omitted
        retry_policy: Consulted after every failed attempt; None delivers failures directly
        send_operation_identifiers: Send ``{"id", "variables"}`` instead of the query text
        serializer: Body codec, JSON by default
        headers: Extra headers for every request (Content-Type is always JSON)
        timeout: Timeout for an owned client
        verify: TLS verification for an owned client
    """

    def __init__(
        self,
        url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        send_operation_identifiers: bool = False,
        serializer: Optional[Serializer] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Union[float, httpx.Timeout] = 30.0,
        verify: bool = True,
    ):
        self.url = url
        self.retry_policy = retry_policy
        self.serializer = serializer or JSONSerializationFormat()
        self.request_builder = RequestBuilder(
            url,
            serializer=self.serializer,
            send_operation_identifiers=send_operation_identifiers,
            headers=headers,
        )
        self.classifier = ResponseClassifier(self.serializer)
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient(timeout=timeout, verify=verify)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[TransportSettings] = None,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        client: Optional[httpx.AsyncClient] = None,
        serializer: Optional[Serializer] = None,
    ) -> "HTTPNetworkTransport":
        settings = settings or get_settings()
        return cls(
            settings.url,
            client=client,
            retry_policy=retry_policy,
            send_operation_identifiers=settings.send_operation_identifiers,
            serializer=serializer,
            headers=settings.headers,
            timeout=settings.httpx_timeout(),
            verify=settings.verify_tls,
        )

    @property
    def send_operation_identifiers(self) -> bool:
        return self.request_builder.send_operation_identifiers

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HTTPNetworkTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ---------- public API ----------

    def send(self, operation: GraphQLOperation, completion: Optional[Completion] = None) -> CallHandle:
        """Start a call chain and return its handle immediately.

        Must be called with a running event loop. The first request is built
        before returning, so OperationIdentifierMissing (and serializer errors)
        are raised here and no network call is made.

        Args:
            operation: Operation to send
            completion: Called once as ``completion(response, None)`` or
                ``completion(None, error)``; never called for a cancelled chain
        """
        chain = _CallChain(operation)
        chain.begin_attempt(self.request_builder.build(operation))
        chain.task = asyncio.get_running_loop().create_task(self._run(chain))
        chain.task.add_done_callback(partial(self._deliver, chain, completion))
        return CallHandle(chain)

    async def execute(self, operation: GraphQLOperation) -> GraphQLResponse:
        """Coroutine form of ``send``; cancelling the caller cancels the chain."""
        return await self.send(operation)

    # ---------- call chain ----------

    async def _run(self, chain: _CallChain) -> GraphQLResponse:
        operation = chain.operation
        while True:
            attempt = chain.current
            assert attempt is not None
            request = attempt.request

            logger.debug(f"Attempt {attempt.number}: POST {request.url}")
            started = time.perf_counter()
            try:
                response = await self.client.send(request.to_httpx())
            except httpx.RequestError as exc:
                chain.state = CallState.CLASSIFYING
                ATTEMPT_LATENCY_MS.observe((time.perf_counter() - started) * 1000)
                ATTEMPTS_TOTAL.labels(outcome="transport_error").inc()
                logger.debug(f"Attempt {attempt.number} failed: {type(exc).__name__}: {exc}")
                error: BaseException = exc
            else:
                chain.state = CallState.CLASSIFYING
                ATTEMPT_LATENCY_MS.observe((time.perf_counter() - started) * 1000)
                try:
                    result = self.classifier.classify(operation, response)
                except GraphQLHTTPResponseError as exc:
                    ATTEMPTS_TOTAL.labels(outcome=exc.kind.value).inc()
                    logger.debug(f"Attempt {attempt.number} rejected: {exc}")
                    error = exc
                else:
                    ATTEMPTS_TOTAL.labels(outcome="success").inc()
                    return result

            chain.last_error = error
            decision = await self._decide(chain, request, error)
            if not decision.retry:
                raise error

            RETRIES_TOTAL.inc()
            logger.info(
                f"Retrying operation (attempt {chain.attempts + 1}) after "
                f"{type(error).__name__}: {error}"
            )
            if decision.delay_sec > 0:
                await asyncio.sleep(decision.delay_sec)
            chain.begin_attempt(self.request_builder.build(operation))

    async def _decide(
        self, chain: _CallChain, request: OutgoingRequest, error: BaseException
    ) -> RetryDecision:
        if self.retry_policy is None:
            return GIVE_UP

        chain.state = CallState.RETRYING
        # Shielded: cancelling the chain leaves the policy running but its answer unused.
        pending = asyncio.ensure_future(
            self.retry_policy.should_retry(chain.operation, request, error)
        )
        pending.add_done_callback(partial(_drain_decision, chain))
        decision = RetryDecision.coerce(await asyncio.shield(pending))

        if chain.cancel_requested:
            raise asyncio.CancelledError()
        if not decision.retry:
            logger.warning(
                f"Retry policy gave up after {chain.attempts} attempt(s): "
                f"{type(error).__name__}: {error}"
            )
        else:
            logger.debug(f"Retry policy granted retry (delay={decision.delay_sec}s)")
        return decision

    def _deliver(self, chain: _CallChain, completion: Optional[Completion], task: asyncio.Task) -> None:
        if task.cancelled():
            chain.state = CallState.CANCELLED
            CALLS_TOTAL.labels(status="cancelled").inc()
            logger.debug(f"Call cancelled after {chain.attempts} attempt(s); nothing delivered")
            return

        chain.state = CallState.DELIVERED
        error = task.exception()
        if error is None:
            CALLS_TOTAL.labels(status="success").inc()
            logger.debug(f"Delivering success after {chain.attempts} attempt(s)")
            if completion is not None:
                completion(task.result(), None)
        else:
            CALLS_TOTAL.labels(status="error").inc()
            logger.debug(f"Delivering {type(error).__name__} after {chain.attempts} attempt(s)")
            if completion is not None:
                completion(None, error)


def _drain_decision(chain: _CallChain, fut: asyncio.Future) -> None:
    # Retrieve the result of a decision whose chain was cancelled meanwhile.
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None and chain.cancel_requested:
        logger.debug(f"Retry policy failed after cancellation: {type(exc).__name__}: {exc}")
