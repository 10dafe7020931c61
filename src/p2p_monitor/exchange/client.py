"""Abstract quote source interface.

Defines the contract the sampling core needs from the marketplace.
The scheduler depends only on this interface, keeping Bybit-specific
request and payload details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod

from p2p_monitor.models import OrderBookEntry, OrderSide


class QuoteSource(ABC):
    """Abstract base class for P2P order book sources."""

    @abstractmethod
    async def connect(self) -> None:
        """Open transport resources (HTTP session)."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release transport resources."""
        ...

    @abstractmethod
    async def fetch_side(
        self,
        side: OrderSide,
        min_amount: int,
        bank: str | None = None,
    ) -> list[OrderBookEntry]:
        """Fetch the ranked advertisements for one side of the order book.

        Args:
            side: Which side to fetch.
            min_amount: Minimum fiat trade amount the ads must accept.
            bank: Optional payment channel filter.

        Returns:
            Entries in marketplace ranking order (best first).

        Raises:
            AdapterFailure: On network error, timeout or malformed payload.
                Implementations never retry; one failure per call.
        """
        ...
