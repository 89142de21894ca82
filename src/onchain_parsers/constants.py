"""Constants for on-chain parser dispatch."""

from enum import Enum

from web3 import Web3

# Fixed entry point every handler contract implements.
PARSE_FUNCTION_SIGNATURE = "parse(bytes)"
PARSE_SELECTOR = bytes(Web3.keccak(text=PARSE_FUNCTION_SIGNATURE)[:4])

DEFAULT_CACHE_MAX_ENTRIES = 1024
DEFAULT_CACHE_TTL = 300.0
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_BLOCK_IDENTIFIER = "latest"


class SchemaTag(str, Enum):
    """Schema tags with a built-in codec."""

    RAW = "raw"
    ADDRESS20 = "address20"
    ADDRESS = "address"
    STRING = "string"
    UTF8 = "utf8"
    UINT256 = "uint256"
    BOOL = "bool"
    BYTES32 = "bytes32"
    BYTES = "bytes"


class ParseState(str, Enum):
    """Lifecycle states of a single parse request."""

    VALIDATING = "validating"
    CACHE_LOOKUP = "cache_lookup"
    HIT_DONE = "hit_done"
    CALLING = "calling"
    CALL_FAILED = "call_failed"
    DECODING = "decoding"
    DECODE_FAILED = "decode_failed"
    DONE = "done"
