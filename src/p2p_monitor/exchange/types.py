"""Bybit P2P payload parsing and payment channel helpers."""

from decimal import Decimal, InvalidOperation

from p2p_monitor.logging import get_logger
from p2p_monitor.models import OrderBookEntry

logger = get_logger(__name__)

UNKNOWN_COUNTERPARTY = "Unknown"

BANK_NAMES: dict[str, str] = {
    "mono": "Monobank",
    "privat": "PrivatBank",
    "oschadbank": "Oschadbank",
}

# itemType values Bybit uses for promo ads reserved to first-time traders
_NEW_USER_ITEM_TYPES = frozenset({"NEW_USER", "NEWUSER"})


def bank_display_name(bank: str | None) -> str:
    """Human-readable name for a payment channel code."""
    if not bank:
        return "all banks"
    return BANK_NAMES.get(bank, bank)


def _parse_price(raw: object) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        price = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite():
        return None
    return price


def parse_order_book(items: list) -> list[OrderBookEntry]:
    """Convert raw Bybit ad items to OrderBookEntry, keeping ranking order.

    Items without a parsable price are dropped rather than given a
    fallback price.
    """
    entries: list[OrderBookEntry] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        price = _parse_price(item.get("price"))
        if price is None:
            logger.debug("order_book_entry_dropped", raw_price=item.get("price"))
            continue
        entries.append(
            OrderBookEntry(
                price=price,
                counterparty_name=item.get("nickName") or UNKNOWN_COUNTERPARTY,
                is_new_user_offer=str(item.get("itemType", "")).upper()
                in _NEW_USER_ITEM_TYPES,
            )
        )
    return entries
