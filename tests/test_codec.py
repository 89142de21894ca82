"""Tests for schema-tagged result codecs."""

import pytest
from eth_abi import encode as abi_encode
from hexbytes import HexBytes

from onchain_parsers.codec import AbiCodec, ResultCodec, SchemaCodec
from onchain_parsers.constants import SchemaTag
from onchain_parsers.exceptions import DecodeError, InvalidInput, UnknownSchema

VITALIK = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"


@pytest.fixture
def codec() -> ResultCodec:
    return ResultCodec.default()


class TestBuiltinCodecs:
    """Decode behaviour of the built-in schema tags."""

    def test_every_schema_tag_is_registered(self, codec):
        assert codec.tags() == sorted(tag.value for tag in SchemaTag)
        assert codec.passthrough_tag == "raw"

    def test_address20_decodes_exact_length(self, codec):
        assert codec.decode("address20", bytes.fromhex(VITALIK[2:])) == VITALIK

    @pytest.mark.parametrize("length", [0, 19, 21, 32])
    def test_address20_rejects_other_lengths(self, codec, length):
        with pytest.raises(DecodeError) as excinfo:
            codec.decode("address20", b"\x01" * length)
        assert excinfo.value.schema_tag == "address20"
        assert excinfo.value.payload_length == length

    def test_schema_tag_enum_is_accepted(self, codec):
        assert codec.decode(SchemaTag.ADDRESS20, bytes.fromhex(VITALIK[2:])) == VITALIK

    def test_abi_address(self, codec):
        assert codec.decode("address", abi_encode(["address"], [VITALIK])) == VITALIK

    def test_abi_address_rejects_dirty_padding(self, codec):
        payload = b"\xff" + abi_encode(["address"], [VITALIK])[1:]
        with pytest.raises(DecodeError):
            codec.decode("address", payload)

    def test_abi_string(self, codec):
        assert codec.decode("string", abi_encode(["string"], ["vitalik.eth"])) == "vitalik.eth"

    def test_abi_decoding_rejects_trailing_bytes(self, codec):
        payload = abi_encode(["uint256"], [7]) + b"\x00" * 32
        with pytest.raises(DecodeError):
            codec.decode("uint256", payload)

    def test_uint256_rejects_short_word(self, codec):
        with pytest.raises(DecodeError):
            codec.decode("uint256", b"\x01" * 31)

    def test_bool(self, codec):
        assert codec.decode("bool", abi_encode(["bool"], [True])) is True

    def test_utf8_rejects_invalid_sequence(self, codec):
        with pytest.raises(DecodeError) as excinfo:
            codec.decode("utf8", b"\xff\xfe")
        assert excinfo.value.schema_tag == "utf8"

    def test_bytes32(self, codec):
        assert codec.decode("bytes32", b"\x02" * 32) == HexBytes(b"\x02" * 32)
        with pytest.raises(DecodeError):
            codec.decode("bytes32", b"\x02" * 33)

    def test_raw_passthrough(self, codec):
        value = codec.decode("raw", b"\x00\x01")
        assert isinstance(value, HexBytes)
        assert value == b"\x00\x01"

    def test_decoding_is_deterministic(self, codec):
        payload = abi_encode(["string"], ["alice.eth"])
        assert codec.decode("string", payload) == codec.decode("string", payload)


@pytest.mark.parametrize(
    ("tag", "value"),
    [
        ("raw", b"\x01\x02"),
        ("address20", VITALIK),
        ("address", VITALIK),
        ("string", "vitalik.eth"),
        ("utf8", "ens: vitalik.eth"),
        ("uint256", 2**256 - 1),
        ("bool", False),
        ("bytes32", b"\x09" * 32),
        ("bytes", b""),
    ],
)
def test_round_trip(tag, value):
    codec = ResultCodec.default()
    assert codec.decode(tag, codec.encode(tag, value)) == value


class TestRegistration:
    """Codec registry management."""

    def test_unknown_tag(self, codec):
        with pytest.raises(UnknownSchema) as excinfo:
            codec.decode("ens-record", b"")
        assert excinfo.value.schema_tag == "ens-record"
        assert "ens-record" not in codec

    def test_duplicate_registration_requires_replace(self, codec):
        custom = SchemaCodec("address20", lambda data: data.hex())
        with pytest.raises(InvalidInput):
            codec.register(custom)

        codec.register(custom, replace=True)
        assert codec.decode("address20", b"\xab") == "ab"

    def test_register_passthrough(self):
        codec = ResultCodec()
        assert codec.passthrough_tag is None
        codec.register(SchemaCodec("opaque", bytes), passthrough=True)
        assert codec.passthrough_tag == "opaque"

    def test_unregister_clears_passthrough(self, codec):
        codec.unregister("raw")
        assert "raw" not in codec
        assert codec.passthrough_tag is None
        with pytest.raises(UnknownSchema):
            codec.unregister("raw")

    def test_set_passthrough_requires_registered_tag(self, codec):
        with pytest.raises(UnknownSchema):
            codec.set_passthrough("missing")

    def test_encode_without_encoder(self, codec):
        codec.register(SchemaCodec("decode-only", bytes))
        with pytest.raises(UnknownSchema):
            codec.encode("decode-only", b"")

    def test_encode_invalid_value(self, codec):
        with pytest.raises(InvalidInput):
            codec.encode("address20", "0x1234")
        with pytest.raises(InvalidInput):
            codec.encode("uint256", -1)

    def test_byte_schemas_reject_non_bytes_values(self, codec):
        with pytest.raises(InvalidInput):
            codec.encode("raw", 5)
        with pytest.raises(InvalidInput):
            codec.encode("bytes32", 32)
        assert codec.encode("bytes32", bytearray(32)) == b"\x00" * 32

    def test_decoder_exceptions_are_wrapped(self, codec):
        def explode(data: bytes) -> None:
            raise KeyError("boom")

        codec.register(SchemaCodec("fragile", explode))
        with pytest.raises(DecodeError) as excinfo:
            codec.decode("fragile", b"\x01\x02")
        assert excinfo.value.payload_length == 2
        assert isinstance(excinfo.value.__cause__, KeyError)


class TestAbiCodec:
    """Custom ABI type lists."""

    def test_tuple_payload(self):
        abi = AbiCodec(["address", "string"])
        payload = abi_encode(["address", "string"], [VITALIK, "vitalik.eth"])
        assert abi.decode(payload) == (VITALIK, "vitalik.eth")
        assert abi.encode((VITALIK, "vitalik.eth")) == payload

    def test_registered_as_schema(self, codec):
        codec.register(AbiCodec(["uint8", "bytes32"]).as_schema("chain-intent"))
        payload = abi_encode(["uint8", "bytes32"], [3, b"\x01" * 32])
        assert codec.decode("chain-intent", payload) == (3, b"\x01" * 32)

    def test_requires_types(self):
        with pytest.raises(ValueError):
            AbiCodec([])
