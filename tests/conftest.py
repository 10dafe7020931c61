"""Shared test fixtures for the P2P quote monitor."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from p2p_monitor.config import (
    AnalysisSettings,
    AppSettings,
    MarketplaceSettings,
    SamplingSettings,
    StorageSettings,
)
from p2p_monitor.exchange.client import QuoteSource
from p2p_monitor.models import OrderBookEntry, OrderSide, RepresentativeQuote, Sample

KYIV = timezone(timedelta(hours=3))


@pytest.fixture
def mock_settings(tmp_path) -> AppSettings:
    """Return AppSettings with test defaults (fast interval, temp database)."""
    return AppSettings(
        log_level="DEBUG",
        marketplace=MarketplaceSettings(request_timeout=1.0),
        sampling=SamplingSettings(interval_seconds=0.05, snapshot_every_ticks=10),
        storage=StorageSettings(db_path=str(tmp_path / "samples.db")),
        analysis=AnalysisSettings(),
    )


def make_entries(*prices: str, new_user_index: int | None = None) -> list[OrderBookEntry]:
    """Build ranked order book entries named ad0, ad1, ... from price strings."""
    return [
        OrderBookEntry(
            price=Decimal(price),
            counterparty_name=f"ad{i}",
            is_new_user_offer=(i == new_user_index),
        )
        for i, price in enumerate(prices)
    ]


def make_sample(
    buy: str,
    sell: str,
    hour: int = 9,
    minute: int = 0,
    day: int = 6,
    bank: str | None = None,
) -> Sample:
    """Build a sample at 2025-01-<day> <hour>:<minute> Kyiv time."""
    buy_quote = (
        RepresentativeQuote(price=Decimal(buy), counterparty_name="buyer", position=2)
        if Decimal(buy) > 0
        else None
    )
    sell_quote = (
        RepresentativeQuote(price=Decimal(sell), counterparty_name="seller", position=2)
        if Decimal(sell) > 0
        else None
    )
    return Sample.build(
        timestamp=datetime(2025, 1, day, hour, minute, tzinfo=KYIV),
        buy=buy_quote,
        sell=sell_quote,
        min_amount=5000,
        bank=bank,
    )


@pytest.fixture
def entries_factory():
    """Factory fixture for ranked order book entries."""
    return make_entries


@pytest.fixture
def sample_factory():
    """Factory fixture for samples at a fixed Kyiv-time date."""
    return make_sample


@pytest.fixture
def quote_source() -> MagicMock:
    """QuoteSource mock serving source.books[side]; tests may swap the books."""
    source = MagicMock(spec=QuoteSource)
    source.books = {
        OrderSide.BUY: make_entries("41.10", "41.15", "41.20", "41.25"),
        OrderSide.SELL: make_entries("41.95", "41.90", "41.80", "41.70"),
    }

    async def fetch_side(side, min_amount, bank=None):
        return list(source.books[side])

    source.fetch_side = AsyncMock(side_effect=fetch_side)
    source.connect = AsyncMock()
    source.close = AsyncMock()
    return source
