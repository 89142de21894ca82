"""AsyncWeb3 adapter implementing the read-only chain client."""

from __future__ import annotations

import logging
from typing import Any, cast

from aiohttp import ClientTimeout
from hexbytes import HexBytes
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import ContractLogicError
from web3.types import BlockIdentifier, TxParams

from ..base import ChainClient
from ..exceptions import ChainCallFailed
from ..types import Address
from ..utils import normalise_address
from .config import ChainClientConfig

logger = logging.getLogger(__name__)


class Web3ChainClient(ChainClient):
    """Issue ``eth_call`` requests against a JSON-RPC endpoint."""

    def __init__(self, config: ChainClientConfig, *, web3: AsyncWeb3 | None = None) -> None:
        self.config = config.with_defaults()
        self._web3: AsyncWeb3 | None = web3
        self._owns_provider = web3 is None
        self._chain_id: int | None = None
        self._connected = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def connect(self) -> None:
        """Open the provider and verify it reaches the expected chain."""

        web3 = self._web3
        if web3 is None:
            provider = AsyncHTTPProvider(
                self.config.rpc_url,
                request_kwargs={"timeout": ClientTimeout(total=self.config.request_timeout)},
            )
            web3 = AsyncWeb3(provider)
            self._web3 = web3

        try:
            reachable = await web3.is_connected()
            chain_id = await web3.eth.chain_id if reachable else None
        except Exception as exc:
            await self.disconnect()
            raise ChainCallFailed(
                "Unable to reach RPC endpoint",
                reason=str(exc),
                details={"endpoint": self.config.rpc_url, "error": str(exc)},
            ) from exc

        if not reachable:
            await self.disconnect()
            raise ChainCallFailed(
                "Unable to connect to RPC endpoint",
                reason="unreachable",
                details={"endpoint": self.config.rpc_url},
            )

        if self.config.chain_id is not None and chain_id != self.config.chain_id:
            await self.disconnect()
            raise ChainCallFailed(
                f"RPC endpoint serves chain {chain_id}, expected {self.config.chain_id}",
                reason="chain id mismatch",
                details={"endpoint": self.config.rpc_url, "chain_id": chain_id},
            )

        self._chain_id = chain_id
        self._connected = True
        logger.info("Connected to RPC at %s (chain %s)", self.config.rpc_url, chain_id)

    async def disconnect(self) -> None:
        web3 = self._web3
        if web3 is not None and self._owns_provider:
            disconnect = getattr(web3.provider, "disconnect", None)
            if disconnect is not None:
                await disconnect()
            self._web3 = None
        self._chain_id = None
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected and self._web3 is not None

    @property
    def chain_id(self) -> int | None:
        return self._chain_id

    @property
    def web3(self) -> AsyncWeb3:
        if self._web3 is None or not self._connected:
            raise ChainCallFailed(
                "RPC provider not connected; call connect() first",
                reason="not connected",
                details={"endpoint": self.config.rpc_url},
            )
        return self._web3

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------
    async def static_call(self, address: Address, call_data: bytes) -> bytes:
        web3 = self.web3
        destination = normalise_address(address)
        tx = cast(TxParams, {"to": destination, "data": HexBytes(call_data)})

        logger.debug("eth_call to=%s bytes=%d", destination, len(call_data))
        try:
            result = await web3.eth.call(
                tx, block_identifier=cast(BlockIdentifier, self.config.block_identifier)
            )
        except ContractLogicError as exc:
            reason = _revert_reason(exc)
            raise ChainCallFailed(
                f"Handler {destination} reverted",
                handler=destination,
                reason=reason,
                details={"error": str(exc), "data": _revert_data(exc)},
            ) from exc
        except Exception as exc:
            raise ChainCallFailed(
                f"Static call to {destination} failed",
                handler=destination,
                reason=str(exc),
                details={"endpoint": self.config.rpc_url, "error": str(exc)},
            ) from exc

        return bytes(result)


def _revert_reason(exc: ContractLogicError) -> str:
    message = getattr(exc, "message", None)
    return str(message) if message else str(exc)


def _revert_data(exc: ContractLogicError) -> Any:
    data = getattr(exc, "data", None)
    if isinstance(data, bytes | bytearray):
        return HexBytes(data).to_0x_hex()
    return data
