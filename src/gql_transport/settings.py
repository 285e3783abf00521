"""
Environment-based transport settings.

Variables use the ``GQL_TRANSPORT_`` prefix, e.g.::

    GQL_TRANSPORT_URL=https://api.example.com/graphql
    GQL_TRANSPORT_SEND_OPERATION_IDENTIFIERS=true
    GQL_TRANSPORT_HEADERS='{"Authorization": "Bearer ..."}'
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, Optional

import httpx
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransportSettings(BaseSettings):
    url: str = Field(..., description="GraphQL server endpoint")
    send_operation_identifiers: bool = Field(
        False, description="Send persisted query ids instead of full query text"
    )
    timeout_sec: float = Field(30.0, gt=0)
    connect_timeout_sec: Optional[float] = Field(None, gt=0)
    verify_tls: bool = True
    headers: Dict[str, str] = Field(default_factory=dict)

    model_config = SettingsConfigDict(
        env_prefix="GQL_TRANSPORT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    def httpx_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.timeout_sec, connect=self.connect_timeout_sec or self.timeout_sec)


@lru_cache()
def get_settings() -> TransportSettings:
    return TransportSettings()
