"""Chain access interface consumed by the dispatcher."""

from abc import ABC, abstractmethod

from .types import Address


class ChainClient(ABC):
    """Read-only accessor performing a single static contract call."""

    @abstractmethod
    async def static_call(self, address: Address, call_data: bytes) -> bytes:
        """Return the raw bytes returned by ``address`` for ``call_data``.

        Implementations raise ``ChainCallFailed`` on revert or transport error.
        """

    @abstractmethod
    async def connect(self) -> None:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass
