"""Parse request orchestration: validate, consult cache, call handler, decode."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from hexbytes import HexBytes

from .base import ChainClient
from .cache import ResultCache
from .codec import ResultCodec
from .constants import ParseState
from .exceptions import (
    ChainCallFailed,
    DecodeError,
    InvalidInput,
    ParserDispatchError,
    UnknownSchema,
)
from .registry import ParserRegistry
from .types import Address, CacheKey, ParseRequest, ParseResult
from .utils import encode_parse_call, ensure_bytes, normalise_address, normalise_schema_tag

logger = logging.getLogger(__name__)


class Dispatcher:
    """Turn parse requests into typed results using handler contracts.

    The dispatcher owns no state of its own: the cache, registry and codec
    are constructed by the caller and may be shared or reset independently.
    Each cache miss performs exactly one read-only chain call; failures are
    never retried here.
    """

    def __init__(
        self,
        chain_client: ChainClient,
        codec: ResultCodec,
        registry: ParserRegistry,
        cache: ResultCache,
        *,
        call_timeout: float | None = None,
        require_registered: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._chain_client = chain_client
        self._codec = codec
        self._registry = registry
        self._cache = cache
        self._call_timeout = call_timeout
        self._require_registered = require_registered
        self._clock = clock

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def registry(self) -> ParserRegistry:
        return self._registry

    @property
    def codec(self) -> ResultCodec:
        return self._codec

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def parse(
        self,
        request: ParseRequest,
        *,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ParseResult:
        """Resolve ``request`` to a ``ParseResult``.

        Raises ``InvalidInput`` or ``UnknownSchema`` before any network
        activity, ``ChainCallFailed`` on revert, transport failure, timeout or
        cancellation via ``cancel_event``, and ``DecodeError`` when the
        response does not fit the schema.
        """

        handler, parser_data = self._validate(request)
        schema_tag = self._resolve_schema(handler, request.schema_tag)
        key = CacheKey.for_request(handler, parser_data, schema_tag)

        self._trace(ParseState.CACHE_LOOKUP, handler, schema_tag)
        cached = self._cache.get(key)
        if cached is not None:
            self._trace(ParseState.HIT_DONE, handler, schema_tag)
            return cached

        generation = self._cache.generation
        handler_generation = self._cache.handler_generation(handler)
        self._trace(ParseState.CALLING, handler, schema_tag)
        response = await self._call_handler(
            handler,
            encode_parse_call(parser_data),
            timeout=self._call_timeout if timeout is None else timeout,
            cancel_event=cancel_event,
        )

        self._trace(ParseState.DECODING, handler, schema_tag)
        try:
            payload = self._unwrap_response(response, schema_tag)
            value = self._codec.decode(schema_tag, payload)
        except DecodeError as exc:
            logger.warning("Decode failed for handler=%s schema=%s: %s", handler, schema_tag, exc)
            raise

        result = ParseResult(
            decoded_value=value,
            raw=HexBytes(payload),
            source_handler=handler,
            schema_tag=schema_tag,
            timestamp=self._clock(),
        )
        self._cache.put(
            key, result, generation=generation, handler_generation=handler_generation
        )
        self._trace(ParseState.DONE, handler, schema_tag)
        return result

    async def parse_many(
        self,
        requests: Sequence[ParseRequest],
        *,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[ParseResult | ParserDispatchError]:
        """Parse requests concurrently; each slot holds a result or its error."""

        async def _settle(request: ParseRequest) -> ParseResult | ParserDispatchError:
            try:
                return await self.parse(request, timeout=timeout, cancel_event=cancel_event)
            except ParserDispatchError as exc:
                return exc

        return list(await asyncio.gather(*(_settle(request) for request in requests)))

    # ------------------------------------------------------------------
    # Validating
    # ------------------------------------------------------------------
    def _validate(self, request: ParseRequest) -> tuple[Address, bytes]:
        if not isinstance(request, ParseRequest):
            raise InvalidInput(
                "Expected a ParseRequest",
                field="request",
                value=request,
            )

        handler = normalise_address(request.handler_address)
        parser_data = ensure_bytes(request.parser_data)

        if self._require_registered and handler not in self._registry:
            raise InvalidInput(
                f"Handler {handler} is not a registered parser",
                field="handler_address",
                value=handler,
            )
        return handler, parser_data

    def _resolve_schema(self, handler: Address, requested: object) -> str:
        if requested is not None:
            tag = normalise_schema_tag(requested)
        else:
            tag = self._registry.default_schema_for(handler) or self._codec.passthrough_tag

        if tag is None:
            raise UnknownSchema(
                f"No schema tag given for handler {handler} and no passthrough codec registered",
                details={"handler": handler},
            )
        if tag not in self._codec:
            raise UnknownSchema(
                f"No codec registered for schema tag '{tag}'",
                schema_tag=tag,
                details={"handler": handler},
            )
        return tag

    # ------------------------------------------------------------------
    # Calling
    # ------------------------------------------------------------------
    async def _call_handler(
        self,
        handler: Address,
        call_data: bytes,
        *,
        timeout: float | None,
        cancel_event: asyncio.Event | None,
    ) -> bytes:
        if cancel_event is not None and cancel_event.is_set():
            raise ChainCallFailed(
                f"Static call to {handler} cancelled before dispatch",
                handler=handler,
                reason="cancelled",
                cancelled=True,
            )

        call = asyncio.ensure_future(self._chain_client.static_call(handler, call_data))
        waiters: set[asyncio.Future] = {call}
        cancel_wait: asyncio.Future | None = None
        if cancel_event is not None:
            cancel_wait = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_wait)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            call.cancel()
            raise
        finally:
            if cancel_wait is not None:
                cancel_wait.cancel()

        if call not in done:
            call.cancel()
            call.add_done_callback(_discard_outcome)
            reason = "cancelled" if cancel_wait is not None and cancel_wait in done else "timeout"
            logger.warning("Static call to %s abandoned: %s", handler, reason)
            raise ChainCallFailed(
                f"Static call to {handler} {'timed out' if reason == 'timeout' else 'was cancelled'}",
                handler=handler,
                reason=reason,
                cancelled=True,
                details={"timeout": timeout},
            )

        try:
            return bytes(call.result())
        except ChainCallFailed as exc:
            logger.warning("Static call to %s failed: %s", handler, exc.reason or exc.message)
            raise
        except asyncio.CancelledError as exc:
            raise ChainCallFailed(
                f"Static call to {handler} was cancelled",
                handler=handler,
                reason="cancelled",
                cancelled=True,
            ) from exc
        except Exception as exc:
            logger.warning("Static call to %s failed: %s", handler, exc)
            raise ChainCallFailed(
                f"Static call to {handler} failed",
                handler=handler,
                reason=str(exc),
                details={"error": str(exc)},
            ) from exc

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------
    def _unwrap_response(self, response: bytes, schema_tag: str) -> bytes:
        """Strip the ABI ``bytes`` return envelope of ``parse(bytes)``."""

        if not response:
            raise DecodeError(
                "Handler returned no data",
                schema_tag=schema_tag,
                payload_length=0,
            )
        try:
            (payload,) = abi_decode(["bytes"], response)
        except Exception as exc:
            raise DecodeError(
                "Handler response is not an ABI-encoded bytes value",
                schema_tag=schema_tag,
                payload_length=len(response),
                details={"error": str(exc)},
            ) from exc

        payload = bytes(payload)
        if abi_encode(["bytes"], [payload]) != response:
            raise DecodeError(
                "Handler response is not the canonical ABI encoding of bytes",
                schema_tag=schema_tag,
                payload_length=len(response),
            )
        return payload

    def _trace(self, state: ParseState, handler: Address, schema_tag: str) -> None:
        logger.debug("parse handler=%s schema=%s state=%s", handler, schema_tag, state.value)


def _discard_outcome(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()
