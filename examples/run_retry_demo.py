"""
Retry Demo: policy-driven retries against a flaky GraphQL server

Starts a mock GraphQL endpoint that fails the first few requests (503, then
an HTML error page with status 200), and sends operations through
HTTPNetworkTransport with a small counting retry policy.

Requires:
- aiohttp installed (pip install -e ".[examples]")
"""

import asyncio

from aiohttp import web
from loguru import logger

from gql_transport import (
    GraphQLHTTPResponseError,
    HTTPNetworkTransport,
    Operation,
    RetryDecision,
)

# Mock GraphQL server
requests_seen = []


async def graphql_handler(request):
    """Fails twice, then answers."""
    payload = await request.json()
    requests_seen.append(payload)
    n = len(requests_seen)

    if n == 1:
        logger.info(f"🔴 Server: request #{n} -> 503")
        return web.Response(text="service unavailable", status=503)
    if n == 2:
        logger.info(f"⚠️  Server: request #{n} -> 200 with HTML body")
        return web.Response(text="<html>maintenance</html>", status=200, content_type="text/html")

    logger.info(f"✅ Server: request #{n} -> 200 JSON")
    return web.json_response({"data": {"hero": {"name": "R2-D2"}}})


async def run_mock_server():
    """Run mock GraphQL server."""
    app = web.Application()
    app.router.add_post("/graphql", graphql_handler)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", 8766)
    await site.start()

    logger.info("🌐 Mock GraphQL server started at http://localhost:8766/graphql")
    return runner


class CountingRetryPolicy:
    """Retries up to max_retries times with a fixed pause."""

    def __init__(self, max_retries: int = 3, delay_sec: float = 0.2):
        self.max_retries = max_retries
        self.delay_sec = delay_sec
        self.attempts = 0

    async def should_retry(self, operation, request, error):
        self.attempts += 1
        if self.attempts > self.max_retries:
            logger.warning(f"Policy: giving up after {self.max_retries} retries")
            return RetryDecision.give_up()
        logger.info(f"Policy: retry #{self.attempts} after {error}")
        return RetryDecision.retry_after(self.delay_sec)


async def main():
    logger.info("🚀 GraphQL HTTP transport retry demo")
    logger.info("=" * 70)

    server = await run_mock_server()
    await asyncio.sleep(0.2)

    try:
        policy = CountingRetryPolicy(max_retries=3)
        async with HTTPNetworkTransport(
            "http://localhost:8766/graphql", retry_policy=policy, timeout=2.0
        ) as transport:
            done = asyncio.Event()

            def on_complete(response, error):
                if error is not None:
                    logger.error(f"Completion: {error}")
                else:
                    logger.info(f"Completion: {response.body}")
                done.set()

            handle = transport.send(Operation("{ hero { name } }"), completion=on_complete)
            await done.wait()
            logger.info(f"Attempts used: {handle.attempts}")

            # A server that keeps failing exhausts the policy
            policy.attempts = 0
            requests_seen.clear()
            try:
                await transport.execute(
                    Operation("{ hero { name } }"),
                )
            except GraphQLHTTPResponseError as e:
                logger.error(f"Unexpected failure: {e}")

        logger.info("")
        logger.info("=" * 70)
        logger.info(f"✅ Demo complete! Server saw {len(requests_seen)} requests in the last call")
    finally:
        await server.cleanup()
        logger.info("🛑 Mock server stopped")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("⚠️  Interrupted")
