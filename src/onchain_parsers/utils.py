"""Utility functions for on-chain parser dispatch."""

from collections.abc import Sequence
from enum import Enum
from typing import Any

from eth_abi import encode as abi_encode
from eth_typing import HexStr
from hexbytes import HexBytes
from web3 import Web3
from web3.types import ChecksumAddress

from .constants import PARSE_SELECTOR
from .exceptions import InvalidInput


def normalise_address(address: Any, field: str = "handler_address") -> ChecksumAddress:
    """Return the checksum form of a 20-byte hex address.

    Mixed-case input must carry a valid EIP-55 checksum; all-lowercase and
    all-uppercase input is accepted as-is.
    """
    if not isinstance(address, str):
        raise InvalidInput("Address must be a hex string", field=field, value=address)

    if not address.startswith(("0x", "0X")) or not Web3.is_address(address):
        raise InvalidInput(
            f"Malformed address '{address}'",
            field=field,
            value=address,
        )

    return Web3.to_checksum_address(address)


def ensure_bytes(value: Any, field: str = "parser_data") -> bytes:
    """Coerce bytes-like values and 0x-prefixed hex strings to bytes."""
    if value is None:
        raise InvalidInput("Value must not be None", field=field, value=value)

    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value)

    if isinstance(value, str):
        if not value.lower().startswith("0x"):
            raise InvalidInput("Hex string must be 0x-prefixed", field=field, value=value)
        try:
            return bytes(Web3.to_bytes(hexstr=HexStr(value)))
        except ValueError as exc:
            raise InvalidInput(
                "Malformed hex string",
                field=field,
                value=value,
                details={"error": str(exc)},
            ) from exc

    raise InvalidInput(
        f"Unsupported type for byte coercion: {type(value)!r}",
        field=field,
        value=value,
    )


def content_hash(data: bytes) -> str:
    """Hash a payload by content; equal bytes always hash equally."""
    return HexBytes(Web3.keccak(bytes(data))).to_0x_hex()


def encode_parse_call(parser_data: bytes) -> bytes:
    """Build call data for ``parse(bytes)``."""
    return PARSE_SELECTOR + abi_encode(["bytes"], [bytes(parser_data)])


def encode_parser_data(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """ABI-encode a payload for a handler, e.g. ``(["string"], ["vitalik.eth"])``."""
    try:
        return abi_encode(list(types), list(values))
    except Exception as exc:
        raise InvalidInput(
            "Unable to ABI-encode parser data",
            field="parser_data",
            value=list(values),
            details={"types": list(types), "error": str(exc)},
        ) from exc


def normalise_schema_tag(tag: Any) -> str:
    """Return the plain string form of a schema tag (accepts ``SchemaTag`` members)."""
    if isinstance(tag, Enum):
        tag = tag.value
    if not isinstance(tag, str) or not tag:
        raise InvalidInput("Schema tag must be a non-empty string", field="schema_tag", value=tag)
    return tag
