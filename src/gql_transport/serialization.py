"""Serialization format used for request and response bodies."""

from __future__ import annotations

import json
from typing import Any, Mapping, Protocol


class Serializer(Protocol):
    """Encodes JSON-compatible mappings to bytes and decodes them back."""

    def serialize(self, value: Mapping[str, Any]) -> bytes: ...

    def deserialize(self, data: bytes) -> Any: ...


class JSONSerializationFormat:
    """UTF-8 JSON with the standard library codec."""

    def serialize(self, value: Mapping[str, Any]) -> bytes:
        return json.dumps(value, separators=(",", ":")).encode("utf-8")

    def deserialize(self, data: bytes) -> Any:
        # json.loads detects UTF-8/16/32 on bytes input
        return json.loads(data)
