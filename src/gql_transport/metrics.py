"""
Prometheus metrics for the transport.

Collectors live in the global REGISTRY; import this module at app startup to
have them exported.
"""

from prometheus_client import Counter, Histogram

ATTEMPTS_TOTAL = Counter(
    "gql_transport_attempts_total",
    "Total number of HTTP attempts by classified outcome",
    ["outcome"],  # success | error_response | invalid_response | transport_error
)

RETRIES_TOTAL = Counter(
    "gql_transport_retries_total",
    "Total number of retries granted by the retry policy",
)

CALLS_TOTAL = Counter(
    "gql_transport_calls_total",
    "Total number of logical calls by final status",
    ["status"],  # success | error | cancelled
)

ATTEMPT_LATENCY_MS = Histogram(
    "gql_transport_attempt_latency_ms",
    "Round-trip latency of a single attempt in milliseconds",
    buckets=[1, 2.5, 5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000],
)


class MetricsRegistry:
    """Structured access to the transport metrics."""

    attempts_total = ATTEMPTS_TOTAL
    retries_total = RETRIES_TOTAL
    calls_total = CALLS_TOTAL
    attempt_latency_ms = ATTEMPT_LATENCY_MS


# Singleton instance
metrics_registry = MetricsRegistry()
