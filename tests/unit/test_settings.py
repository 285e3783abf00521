"""
Unit tests for TransportSettings and HTTPNetworkTransport.from_settings.
"""

import pytest
from pydantic import ValidationError

from gql_transport import HTTPNetworkTransport, Operation, TransportSettings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "GQL_TRANSPORT_URL",
        "GQL_TRANSPORT_SEND_OPERATION_IDENTIFIERS",
        "GQL_TRANSPORT_TIMEOUT_SEC",
        "GQL_TRANSPORT_CONNECT_TIMEOUT_SEC",
        "GQL_TRANSPORT_VERIFY_TLS",
        "GQL_TRANSPORT_HEADERS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_defaults():
    """Only the URL is required."""
    cfg = TransportSettings(url="http://localhost:4000/graphql")
    assert cfg.send_operation_identifiers is False
    assert cfg.timeout_sec == 30.0
    assert cfg.connect_timeout_sec is None
    assert cfg.verify_tls is True
    assert cfg.headers == {}


def test_settings_require_url():
    """Missing URL is a validation error."""
    with pytest.raises(ValidationError):
        TransportSettings()


def test_settings_from_env(monkeypatch):
    """Environment variables with the GQL_TRANSPORT_ prefix are read."""
    monkeypatch.setenv("GQL_TRANSPORT_URL", "https://api.example.com/graphql")
    monkeypatch.setenv("GQL_TRANSPORT_SEND_OPERATION_IDENTIFIERS", "true")
    monkeypatch.setenv("GQL_TRANSPORT_TIMEOUT_SEC", "5")
    monkeypatch.setenv("GQL_TRANSPORT_VERIFY_TLS", "false")
    monkeypatch.setenv("GQL_TRANSPORT_HEADERS", '{"Authorization": "Bearer abc"}')

    cfg = get_settings()
    assert cfg.url == "https://api.example.com/graphql"
    assert cfg.send_operation_identifiers is True
    assert cfg.timeout_sec == 5.0
    assert cfg.verify_tls is False
    assert cfg.headers == {"Authorization": "Bearer abc"}
    assert get_settings() is cfg


def test_settings_reject_non_positive_timeout():
    """Timeouts must be positive."""
    with pytest.raises(ValidationError):
        TransportSettings(url="http://x", timeout_sec=0)


def test_httpx_timeout():
    """Connect timeout falls back to the overall timeout."""
    t = TransportSettings(url="http://x", timeout_sec=7).httpx_timeout()
    assert t.read == 7
    assert t.connect == 7

    t = TransportSettings(url="http://x", timeout_sec=7, connect_timeout_sec=2).httpx_timeout()
    assert t.connect == 2


@pytest.mark.asyncio
async def test_transport_from_settings():
    """Settings are applied once at construction."""
    cfg = TransportSettings(
        url="http://graphql.test/graphql",
        send_operation_identifiers=True,
        timeout_sec=3,
        headers={"X-Client": "tests"},
    )
    async with HTTPNetworkTransport.from_settings(cfg) as transport:
        assert transport.url == "http://graphql.test/graphql"
        assert transport.send_operation_identifiers is True
        assert transport.client.timeout.read == 3
        assert transport.retry_policy is None

        req = transport.request_builder.build(Operation("{ a }", operation_identifier="p1"))
        assert req.headers["X-Client"] == "tests"
