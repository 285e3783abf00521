"""
Pytest configuration and fixtures for gql-http-transport.

Provides cross-platform event loop configuration, a mock network and
reusable retry policies.
"""

import asyncio
import sys

import httpx
import pytest

from gql_transport import HTTPNetworkTransport, Operation, RetryDecision

# Set policy *before* pytest-asyncio creates any loops
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


TEST_URL = "http://graphql.test/graphql"


class FakeServer:
    """MockTransport handler replaying queued responses and recording requests.

    Queue items may be an ``httpx.Response``, an exception instance (raised as
    a connection-level failure) or an async callable taking the request.
    Once the queue is drained the last item is reused.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome(request)
        # fresh copy so a queued response can be replayed
        return httpx.Response(outcome.status_code, headers=outcome.headers, content=outcome.content)

    @property
    def count(self) -> int:
        return len(self.requests)


class CountingPolicy:
    """Retries the first ``retries`` failures, then gives up."""

    def __init__(self, retries: int = 0):
        self.retries = retries
        self.calls = []

    async def should_retry(self, operation, request, error):
        self.calls.append((operation, request, error))
        await asyncio.sleep(0)
        if len(self.calls) <= self.retries:
            return RetryDecision.retry_after()
        return RetryDecision.give_up()


class Completions:
    """Completion callback recording every delivery."""

    def __init__(self):
        self.calls = []

    def __call__(self, response, error):
        self.calls.append((response, error))


@pytest.fixture
def hero_operation():
    """Operation from the README example."""
    return Operation(query_document="{ hero { name } }", variables={})


@pytest.fixture
def completions():
    return Completions()


@pytest.fixture
def make_transport():
    """Build a transport wired to a FakeServer through httpx.MockTransport."""

    def _make(server: FakeServer, **kwargs) -> HTTPNetworkTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(server))
        return HTTPNetworkTransport(TEST_URL, client=client, **kwargs)

    return _make
