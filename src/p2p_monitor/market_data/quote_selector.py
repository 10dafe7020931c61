"""Representative quote selection for one side of the P2P order book.

The top-ranked ad is often a loss-leader or a manipulated outlier, so
the third-ranked ad (index 2) is taken as the achievable market price.
Promotional new-user ads are removed first since ordinary traders
cannot take them. If there is no usable third ad, fall back to the first.
"""

from collections.abc import Sequence
from decimal import Decimal

from p2p_monitor.models import OrderBookEntry, RepresentativeQuote

REPRESENTATIVE_INDEX = 2
FALLBACK_INDEX = 0


def _is_valid_price(price: Decimal) -> bool:
    return price.is_finite() and price > 0


def select_representative_quote(
    entries: Sequence[OrderBookEntry],
) -> RepresentativeQuote | None:
    """Reduce one side's ranked ads to a single representative quote.

    Args:
        entries: Ads for one side in marketplace ranking order.

    Returns:
        The quote at index 2 of the new-user-filtered list when its price is
        valid, else the quote at index 0, else None when the side has no
        usable quote.
    """
    eligible = [entry for entry in entries if not entry.is_new_user_offer]

    for index in (REPRESENTATIVE_INDEX, FALLBACK_INDEX):
        if len(eligible) > index and _is_valid_price(eligible[index].price):
            entry = eligible[index]
            return RepresentativeQuote(
                price=entry.price,
                counterparty_name=entry.counterparty_name,
                position=index,
            )
    return None
