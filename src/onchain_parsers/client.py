"""High level client wiring chain access, registry, cache and codecs together."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from .base import ChainClient
from .cache import ResultCache
from .codec import ResultCodec, SchemaCodec
from .config import ParserClientConfig
from .constants import (
    DEFAULT_BLOCK_IDENTIFIER,
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_CACHE_TTL,
    DEFAULT_REQUEST_TIMEOUT,
)
from .dispatcher import Dispatcher
from .evm.config import ChainClientConfig
from .evm.connections import Web3ChainClient
from .exceptions import ParserDispatchError
from .registry import ParserRegistry
from .types import Address, ParseRequest, ParseResult, RegistryEntry

logger = logging.getLogger(__name__)


class ParserClient:
    """Resolve on-chain metadata through caller-selected parser contracts."""

    def __init__(
        self,
        rpc_url: str,
        *,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        block_identifier: str | int = DEFAULT_BLOCK_IDENTIFIER,
        chain_id: int | None = None,
        cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
        cache_ttl: float | None = DEFAULT_CACHE_TTL,
        call_timeout: float | None = None,
        require_registered: bool = False,
        chain_client: ChainClient | None = None,
        registry: ParserRegistry | None = None,
        cache: ResultCache | None = None,
        codec: ResultCodec | None = None,
    ) -> None:
        config = ParserClientConfig(
            chain=ChainClientConfig(
                rpc_url=rpc_url,
                request_timeout=request_timeout,
                block_identifier=block_identifier,
                chain_id=chain_id,
            ),
            cache_max_entries=cache_max_entries,
            cache_ttl=cache_ttl,
            call_timeout=call_timeout,
            require_registered=require_registered,
        ).with_defaults()

        self._config = config
        self._chain_client = (
            chain_client if chain_client is not None else Web3ChainClient(config.chain)
        )
        self._registry = registry if registry is not None else ParserRegistry()
        self._cache = (
            cache
            if cache is not None
            else ResultCache(maxsize=config.cache_max_entries, ttl=config.cache_ttl)
        )
        self._codec = codec if codec is not None else ResultCodec.default()
        self._dispatcher = Dispatcher(
            self._chain_client,
            self._codec,
            self._registry,
            self._cache,
            call_timeout=config.call_timeout,
            require_registered=config.require_registered,
        )

    @classmethod
    def from_config(cls, config: ParserClientConfig, **components: Any) -> ParserClient:
        chain = config.chain
        return cls(
            chain.rpc_url,
            request_timeout=chain.request_timeout,
            block_identifier=chain.block_identifier,
            chain_id=chain.chain_id,
            cache_max_entries=config.cache_max_entries,
            cache_ttl=config.cache_ttl,
            call_timeout=config.call_timeout,
            require_registered=config.require_registered,
            **components,
        )

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------
    async def connect(self) -> None:
        await self._chain_client.connect()

    async def disconnect(self) -> None:
        await self._chain_client.disconnect()

    def is_connected(self) -> bool:
        return self._chain_client.is_connected()

    async def __aenter__(self) -> ParserClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def config(self) -> ParserClientConfig:
        return self._config

    @property
    def registry(self) -> ParserRegistry:
        return self._registry

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def codec(self) -> ResultCodec:
        return self._codec

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------
    async def parse(
        self,
        handler_address: Address,
        parser_data: bytes,
        schema_tag: str | None = None,
        *,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ParseResult:
        request = ParseRequest(
            handler_address=handler_address,
            parser_data=parser_data,
            schema_tag=schema_tag,
        )
        return await self._dispatcher.parse(request, timeout=timeout, cancel_event=cancel_event)

    async def parse_many(
        self,
        requests: Sequence[ParseRequest],
        *,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[ParseResult | ParserDispatchError]:
        return await self._dispatcher.parse_many(
            requests, timeout=timeout, cancel_event=cancel_event
        )

    # ------------------------------------------------------------------
    # Registry, codec and cache management
    # ------------------------------------------------------------------
    def register_parser(
        self,
        handler_address: Address,
        trusted_label: str,
        default_schema_tag: str | None = None,
        *,
        replace: bool = False,
    ) -> RegistryEntry:
        return self._registry.add(
            handler_address, trusted_label, default_schema_tag, replace=replace
        )

    def remove_parser(self, handler_address: Address) -> RegistryEntry:
        """Stop trusting a handler and drop any results cached from it."""

        entry = self._registry.remove(handler_address)
        self._cache.invalidate_handler(entry.handler_address)
        return entry

    def register_codec(
        self, codec: SchemaCodec, *, replace: bool = False, passthrough: bool = False
    ) -> None:
        self._codec.register(codec, replace=replace, passthrough=passthrough)

    def clear_cache(self) -> None:
        self._cache.clear()
