"""Configuration containers for the web3 chain client."""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import DEFAULT_BLOCK_IDENTIFIER, DEFAULT_REQUEST_TIMEOUT


@dataclass(frozen=True)
class ChainClientConfig:
    """RPC endpoint and call options for ``Web3ChainClient``."""

    rpc_url: str
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    block_identifier: str | int = DEFAULT_BLOCK_IDENTIFIER
    chain_id: int | None = None

    def with_defaults(self) -> ChainClientConfig:
        """Return a copy with a normalised RPC URL."""

        return ChainClientConfig(
            rpc_url=self.rpc_url.rstrip("/"),
            request_timeout=self.request_timeout,
            block_identifier=self.block_identifier,
            chain_id=self.chain_id,
        )
