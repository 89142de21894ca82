"""Configuration container for the parser client facade."""

from __future__ import annotations

from dataclasses import dataclass

from .constants import DEFAULT_CACHE_MAX_ENTRIES, DEFAULT_CACHE_TTL
from .evm.config import ChainClientConfig


@dataclass(frozen=True)
class ParserClientConfig:
    """Aggregated configuration used to construct ``ParserClient``."""

    chain: ChainClientConfig
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES
    cache_ttl: float | None = DEFAULT_CACHE_TTL
    call_timeout: float | None = None
    require_registered: bool = False

    def with_defaults(self) -> ParserClientConfig:
        return ParserClientConfig(
            chain=self.chain.with_defaults(),
            cache_max_entries=self.cache_max_entries,
            cache_ttl=self.cache_ttl,
            call_timeout=self.call_timeout,
            require_registered=self.require_registered,
        )
