"""Type definitions and data models for on-chain parser dispatch."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from hexbytes import HexBytes

from .utils import content_hash

Address = str  # Hex-encoded 20-byte chain address
SchemaTagLike = str  # Schema tag identifier; SchemaTag members are accepted too


@dataclass(frozen=True)
class ParseRequest:
    """Handler address, raw payload and optional schema tag submitted for dispatch."""

    handler_address: Address
    parser_data: bytes
    schema_tag: SchemaTagLike | None = None


@dataclass(frozen=True)
class ParseResult:
    """Typed value decoded from a handler response.

    ``raw`` is the handler's payload after the ABI ``bytes`` return envelope
    has been removed; it is the exact input given to the schema decoder.
    """

    decoded_value: Any
    raw: HexBytes
    source_handler: Address
    schema_tag: str
    timestamp: float


@dataclass(frozen=True)
class RegistryEntry:
    """A parser handler the caller has chosen to trust."""

    handler_address: Address
    trusted_label: str
    default_schema_tag: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RegistryEntry:
        """Construct an entry from a JSON-like manifest item."""

        address = data.get("handlerAddress") or data.get("handler_address") or data.get("address")
        label = data.get("trustedLabel") or data.get("trusted_label") or data.get("label") or ""
        schema = (
            data.get("defaultSchemaTag")
            or data.get("default_schema_tag")
            or data.get("schemaTag")
            or data.get("schema")
        )
        return cls(
            handler_address=address,
            trusted_label=str(label),
            default_schema_tag=str(schema) if schema else None,
        )


@dataclass(frozen=True)
class CacheKey:
    """Content-addressed cache key for a resolved parse request."""

    handler_address: Address
    data_hash: str
    schema_tag: str

    @classmethod
    def for_request(cls, handler_address: Address, parser_data: bytes, schema_tag: str) -> CacheKey:
        return cls(
            handler_address=handler_address,
            data_hash=content_hash(parser_data),
            schema_tag=schema_tag,
        )
