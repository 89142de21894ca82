"""Schema-tagged decoders for handler responses."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from hexbytes import HexBytes
from web3 import Web3

from .constants import SchemaTag
from .exceptions import DecodeError, InvalidInput, UnknownSchema
from .utils import normalise_address, normalise_schema_tag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaCodec:
    """Decode/encode pair registered under a schema tag."""

    tag: str
    decode: Callable[[bytes], Any]
    encode: Callable[[Any], bytes] | None = None
    description: str = ""


class AbiCodec:
    """Decode a payload as an ABI-encoded list of types.

    Decoding is strict: the payload must be the canonical encoding of the
    decoded values, so trailing bytes or dirty padding are rejected rather
    than ignored.
    """

    def __init__(self, types: Sequence[str]) -> None:
        if not types:
            raise ValueError("AbiCodec requires at least one ABI type")
        self.types = list(types)

    @property
    def is_single(self) -> bool:
        return len(self.types) == 1

    def decode(self, data: bytes) -> Any:
        try:
            values = abi_decode(self.types, data)
        except Exception as exc:
            raise DecodeError(
                f"Payload is not a valid ABI encoding of ({','.join(self.types)})",
                payload_length=len(data),
                details={"error": str(exc)},
            ) from exc

        if abi_encode(self.types, list(values)) != data:
            raise DecodeError(
                f"Payload is not the canonical ABI encoding of ({','.join(self.types)})",
                payload_length=len(data),
            )

        return values[0] if self.is_single else tuple(values)

    def encode(self, value: Any) -> bytes:
        values = [value] if self.is_single else list(value)
        return abi_encode(self.types, values)

    def as_schema(self, tag: str, description: str = "") -> SchemaCodec:
        return SchemaCodec(
            tag=tag,
            decode=self.decode,
            encode=self.encode,
            description=description or f"ABI ({','.join(self.types)})",
        )


def _fixed_length(data: bytes, length: int) -> bytes:
    if len(data) != length:
        raise DecodeError(
            f"Expected exactly {length} bytes, got {len(data)}",
            payload_length=len(data),
        )
    return data


def _decode_raw(data: bytes) -> HexBytes:
    return HexBytes(data)


def _require_bytes_like(value: Any) -> bytes:
    if not isinstance(value, bytes | bytearray | memoryview):
        raise TypeError(f"Expected a bytes-like value, got {type(value).__name__}")
    return bytes(value)


def _encode_raw(value: Any) -> bytes:
    return _require_bytes_like(value)


def _decode_address20(data: bytes) -> str:
    return Web3.to_checksum_address("0x" + _fixed_length(data, 20).hex())


def _encode_address20(value: Any) -> bytes:
    return bytes(HexBytes(normalise_address(value, field="value")))


def _decode_bytes32(data: bytes) -> HexBytes:
    return HexBytes(_fixed_length(data, 32))


def _encode_bytes32(value: Any) -> bytes:
    return _fixed_length(_require_bytes_like(value), 32)


def _decode_utf8(data: bytes) -> str:
    return data.decode("utf-8")


def _encode_utf8(value: str) -> bytes:
    return value.encode("utf-8")


def builtin_codecs() -> list[SchemaCodec]:
    """Return codecs for every ``SchemaTag`` member."""

    return [
        SchemaCodec(SchemaTag.RAW.value, _decode_raw, _encode_raw, "Raw bytes, unmodified"),
        SchemaCodec(
            SchemaTag.ADDRESS20.value,
            _decode_address20,
            _encode_address20,
            "Exactly 20 bytes interpreted as an address",
        ),
        AbiCodec(["address"]).as_schema(SchemaTag.ADDRESS.value),
        AbiCodec(["string"]).as_schema(SchemaTag.STRING.value),
        SchemaCodec(SchemaTag.UTF8.value, _decode_utf8, _encode_utf8, "Packed UTF-8 text"),
        AbiCodec(["uint256"]).as_schema(SchemaTag.UINT256.value),
        AbiCodec(["bool"]).as_schema(SchemaTag.BOOL.value),
        SchemaCodec(
            SchemaTag.BYTES32.value, _decode_bytes32, _encode_bytes32, "Exactly 32 bytes"
        ),
        AbiCodec(["bytes"]).as_schema(SchemaTag.BYTES.value),
    ]


class ResultCodec:
    """Registry mapping schema tags to decode/encode pairs."""

    def __init__(
        self,
        codecs: Iterable[SchemaCodec] | None = None,
        *,
        passthrough_tag: str | None = None,
    ) -> None:
        self._codecs: dict[str, SchemaCodec] = {}
        self._passthrough_tag: str | None = None
        for codec in codecs or ():
            self.register(codec)
        if passthrough_tag is not None:
            self.set_passthrough(passthrough_tag)

    @classmethod
    def default(cls) -> ResultCodec:
        """Codec registry with the built-in tags and ``raw`` as passthrough."""

        return cls(builtin_codecs(), passthrough_tag=SchemaTag.RAW.value)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(
        self,
        codec: SchemaCodec,
        *,
        replace: bool = False,
        passthrough: bool = False,
    ) -> None:
        tag = normalise_schema_tag(codec.tag)
        if tag in self._codecs and not replace:
            raise InvalidInput(
                f"Schema tag '{tag}' is already registered",
                field="schema_tag",
                value=tag,
            )
        self._codecs[tag] = codec
        logger.debug("Registered codec for schema tag %s", tag)
        if passthrough:
            self._passthrough_tag = tag

    def unregister(self, tag: Any) -> None:
        tag = normalise_schema_tag(tag)
        if self._codecs.pop(tag, None) is None:
            raise UnknownSchema(f"No codec registered for schema tag '{tag}'", schema_tag=tag)
        if self._passthrough_tag == tag:
            self._passthrough_tag = None

    def set_passthrough(self, tag: Any) -> None:
        tag = normalise_schema_tag(tag)
        if tag not in self._codecs:
            raise UnknownSchema(f"No codec registered for schema tag '{tag}'", schema_tag=tag)
        self._passthrough_tag = tag

    @property
    def passthrough_tag(self) -> str | None:
        """Tag used when neither the request nor the registry names a schema."""
        return self._passthrough_tag

    def tags(self) -> list[str]:
        return sorted(self._codecs)

    def __contains__(self, tag: object) -> bool:
        try:
            return normalise_schema_tag(tag) in self._codecs
        except InvalidInput:
            return False

    def get(self, tag: Any) -> SchemaCodec:
        tag = normalise_schema_tag(tag)
        codec = self._codecs.get(tag)
        if codec is None:
            raise UnknownSchema(f"No codec registered for schema tag '{tag}'", schema_tag=tag)
        return codec

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------
    def decode(self, tag: Any, data: bytes) -> Any:
        codec = self.get(tag)
        payload = bytes(data)
        try:
            return codec.decode(payload)
        except DecodeError as exc:
            if exc.schema_tag is None:
                exc.schema_tag = codec.tag
            raise
        except Exception as exc:
            raise DecodeError(
                f"Failed to decode payload as '{codec.tag}'",
                schema_tag=codec.tag,
                payload_length=len(payload),
                details={"error": str(exc)},
            ) from exc

    def encode(self, tag: Any, value: Any) -> bytes:
        codec = self.get(tag)
        if codec.encode is None:
            raise UnknownSchema(
                f"Schema tag '{codec.tag}' does not declare an encoder",
                schema_tag=codec.tag,
            )
        try:
            return bytes(codec.encode(value))
        except InvalidInput:
            raise
        except Exception as exc:
            raise InvalidInput(
                f"Value cannot be encoded as '{codec.tag}'",
                field="value",
                value=value,
                details={"error": str(exc)},
            ) from exc
