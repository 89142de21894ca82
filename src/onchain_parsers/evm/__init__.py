"""web3-backed chain access for parser dispatch."""

from .config import ChainClientConfig
from .connections import Web3ChainClient

__all__ = ["ChainClientConfig", "Web3ChainClient"]
