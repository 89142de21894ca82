"""On-chain parser dispatch.

Lets a wallet ask independently deployed parser contracts to interpret
arbitrary on-chain data, and turns their raw byte responses into typed
results through schema-tagged codecs, with caching and classified failures.
"""

from .base import ChainClient
from .cache import ResultCache
from .client import ParserClient
from .codec import AbiCodec, ResultCodec, SchemaCodec, builtin_codecs
from .config import ParserClientConfig
from .constants import PARSE_FUNCTION_SIGNATURE, PARSE_SELECTOR, ParseState, SchemaTag
from .dispatcher import Dispatcher
from .evm import ChainClientConfig, Web3ChainClient
from .exceptions import (
    ChainCallFailed,
    DecodeError,
    InvalidInput,
    ParserDispatchError,
    UnknownSchema,
)
from .registry import ParserRegistry
from .types import Address, CacheKey, ParseRequest, ParseResult, RegistryEntry
from .utils import (
    content_hash,
    encode_parse_call,
    encode_parser_data,
    ensure_bytes,
    normalise_address,
)

__version__ = "0.1.0"

__all__ = [
    # Components
    "ChainClient",
    "Dispatcher",
    "ParserClient",
    "ParserRegistry",
    "ResultCache",
    "ResultCodec",
    "Web3ChainClient",
    # Codecs
    "AbiCodec",
    "SchemaCodec",
    "builtin_codecs",
    # Configuration
    "ChainClientConfig",
    "ParserClientConfig",
    # Types and enums
    "Address",
    "CacheKey",
    "ParseRequest",
    "ParseResult",
    "ParseState",
    "RegistryEntry",
    "SchemaTag",
    "PARSE_FUNCTION_SIGNATURE",
    "PARSE_SELECTOR",
    # Exceptions
    "ParserDispatchError",
    "InvalidInput",
    "UnknownSchema",
    "ChainCallFailed",
    "DecodeError",
    # Utility functions
    "content_hash",
    "encode_parse_call",
    "encode_parser_data",
    "ensure_bytes",
    "normalise_address",
]
