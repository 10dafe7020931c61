"""Tests for representative quote selection."""

from decimal import Decimal

from p2p_monitor.market_data.quote_selector import select_representative_quote
from p2p_monitor.models import OrderBookEntry


class TestIndexSelection:
    """The third eligible ad is preferred."""

    def test_picks_index_two(self, entries_factory) -> None:
        quote = select_representative_quote(entries_factory("10", "11", "12", "13"))
        assert quote is not None
        assert quote.price == Decimal("12")
        assert quote.counterparty_name == "ad2"
        assert quote.position == 2

    def test_new_user_offer_filtered_before_indexing(self, entries_factory) -> None:
        # A(new)=10 is dropped, leaving [B, C, D]; index 2 is D=13
        entries = entries_factory("10", "11", "12", "13", new_user_index=0)
        quote = select_representative_quote(entries)
        assert quote is not None
        assert quote.price == Decimal("13")
        assert quote.counterparty_name == "ad3"

    def test_new_user_offer_in_middle(self, entries_factory) -> None:
        entries = entries_factory("10", "11", "12", "13", new_user_index=2)
        quote = select_representative_quote(entries)
        assert quote is not None
        assert quote.price == Decimal("13")


class TestFallback:
    """Fallback to the first eligible ad, then to no quote."""

    def test_single_entry_returned(self, entries_factory) -> None:
        quote = select_representative_quote(entries_factory("41.5"))
        assert quote is not None
        assert quote.price == Decimal("41.5")
        assert quote.position == 0

    def test_two_entries_fall_back_to_first(self, entries_factory) -> None:
        quote = select_representative_quote(entries_factory("41.5", "41.6"))
        assert quote is not None
        assert quote.price == Decimal("41.5")

    def test_invalid_third_price_falls_back_to_first(self, entries_factory) -> None:
        quote = select_representative_quote(entries_factory("41.5", "41.6", "0"))
        assert quote is not None
        assert quote.price == Decimal("41.5")
        assert quote.position == 0

    def test_non_finite_price_is_invalid(self) -> None:
        entries = [
            OrderBookEntry(price=Decimal("41"), counterparty_name="a"),
            OrderBookEntry(price=Decimal("42"), counterparty_name="b"),
            OrderBookEntry(price=Decimal("NaN"), counterparty_name="c"),
        ]
        quote = select_representative_quote(entries)
        assert quote is not None
        assert quote.counterparty_name == "a"

    def test_empty_list_has_no_quote(self) -> None:
        assert select_representative_quote([]) is None

    def test_only_new_user_offers_has_no_quote(self, entries_factory) -> None:
        entries = entries_factory("10", new_user_index=0)
        assert select_representative_quote(entries) is None

    def test_all_invalid_prices_has_no_quote(self, entries_factory) -> None:
        assert select_representative_quote(entries_factory("0", "0", "0")) is None


def test_input_list_not_mutated(entries_factory) -> None:
    entries = entries_factory("10", "11", "12", new_user_index=1)
    before = list(entries)
    select_representative_quote(entries)
    assert entries == before
