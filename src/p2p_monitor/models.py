"""Shared data models for the P2P quote monitor.

CRITICAL: All prices use Decimal. Never use float for prices, spreads or averages.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class OrderSide(str, Enum):
    """Order book side, from the point of view of the person taking an ad."""

    BUY = "buy"
    SELL = "sell"


class DayOfWeek(str, Enum):
    """Day of week, in datetime.weekday() order."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_datetime(cls, value: datetime) -> "DayOfWeek":
        return list(cls)[value.weekday()]


@dataclass(frozen=True)
class OrderBookEntry:
    """A single P2P advertisement as returned by the quote source."""

    price: Decimal
    counterparty_name: str
    is_new_user_offer: bool = False


@dataclass(frozen=True)
class RepresentativeQuote:
    """The one quote chosen for a side on a tick."""

    price: Decimal
    counterparty_name: str
    position: int  # index in the filtered list (2, or 0 on fallback)


@dataclass(frozen=True)
class Sample:
    """One tick's accepted buy/sell quote pair plus derived spread fields.

    A side without a quote is stored with price 0 and an empty name.
    """

    timestamp: datetime
    hour_of_day: int
    day_of_week: DayOfWeek
    buy_price: Decimal
    sell_price: Decimal
    spread: Decimal
    spread_percent: Decimal
    buyer_name: str
    seller_name: str
    min_amount: int
    bank: str | None = None

    @classmethod
    def build(
        cls,
        timestamp: datetime,
        buy: RepresentativeQuote | None,
        sell: RepresentativeQuote | None,
        min_amount: int,
        bank: str | None = None,
    ) -> "Sample":
        """Build a sample from the representative quotes of both sides.

        Raises:
            ValueError: If neither side produced a price.
        """
        buy_price = buy.price if buy is not None else _ZERO
        sell_price = sell.price if sell is not None else _ZERO
        if buy_price <= 0 and sell_price <= 0:
            raise ValueError("a sample needs at least one priced side")

        spread = sell_price - buy_price
        spread_percent = spread / buy_price * _HUNDRED if buy_price > 0 else _ZERO

        return cls(
            timestamp=timestamp,
            hour_of_day=timestamp.hour,
            day_of_week=DayOfWeek.from_datetime(timestamp),
            buy_price=buy_price,
            sell_price=sell_price,
            spread=spread,
            spread_percent=spread_percent,
            buyer_name=buy.counterparty_name if buy is not None else "",
            seller_name=sell.counterparty_name if sell is not None else "",
            min_amount=min_amount,
            bank=bank,
        )

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "date": self.timestamp.date().isoformat(),
            "time": self.timestamp.strftime("%H:%M:%S"),
            "hour": self.hour_of_day,
            "day_of_week": self.day_of_week.value,
            "buy_price": str(self.buy_price),
            "sell_price": str(self.sell_price),
            "spread": str(self.spread),
            "spread_percent": str(self.spread_percent),
            "buyer_name": self.buyer_name,
            "seller_name": self.seller_name,
            "min_amount": self.min_amount,
            "bank": self.bank,
        }


@dataclass(frozen=True)
class HourBucket:
    """Running statistics over every sample ever folded into one hour of day.

    Immutable: the aggregator swaps in an updated copy on each fold.
    """

    hour: int
    count: int
    avg_buy_price: Decimal
    avg_sell_price: Decimal
    avg_spread_percent: Decimal
    min_buy_price: Decimal
    max_sell_price: Decimal

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "hour": self.hour,
            "count": self.count,
            "avg_buy_price": str(self.avg_buy_price),
            "avg_sell_price": str(self.avg_sell_price),
            "avg_spread_percent": str(self.avg_spread_percent),
            "min_buy_price": str(self.min_buy_price),
            "max_sell_price": str(self.max_sell_price),
        }


@dataclass(frozen=True)
class StrategyCandidate:
    """Hypothetical buy-in-one-hour, sell-in-another pairing."""

    buy_hour: int
    sell_hour: int
    buy_price: Decimal  # avg buy price of buy_hour
    sell_price: Decimal  # avg sell price of sell_hour
    profit: Decimal
    profit_percent: Decimal

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "buy_hour": self.buy_hour,
            "sell_hour": self.sell_hour,
            "buy_price": str(self.buy_price),
            "sell_price": str(self.sell_price),
            "profit": str(self.profit),
            "profit_percent": str(self.profit_percent),
        }


def _quote_dict(quote: RepresentativeQuote | None) -> dict | None:
    if quote is None:
        return None
    return {
        "price": str(quote.price),
        "counterparty_name": quote.counterparty_name,
        "position": quote.position,
    }


@dataclass(frozen=True)
class LiveQuote:
    """Both order book sides as they are right now. Never recorded."""

    fetched_at: datetime
    min_amount: int
    bank: str | None
    buy: RepresentativeQuote | None
    sell: RepresentativeQuote | None
    buy_entries: tuple[OrderBookEntry, ...]
    sell_entries: tuple[OrderBookEntry, ...]

    @property
    def spread(self) -> Decimal | None:
        if self.buy is None or self.sell is None:
            return None
        return self.sell.price - self.buy.price

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        spread = self.spread
        return {
            "fetched_at": self.fetched_at.isoformat(),
            "min_amount": self.min_amount,
            "bank": self.bank,
            "buy": _quote_dict(self.buy),
            "sell": _quote_dict(self.sell),
            "spread": str(spread) if spread is not None else None,
            "buy_entries": [
                {"price": str(e.price), "counterparty_name": e.counterparty_name}
                for e in self.buy_entries
            ],
            "sell_entries": [
                {"price": str(e.price), "counterparty_name": e.counterparty_name}
                for e in self.sell_entries
            ],
        }
