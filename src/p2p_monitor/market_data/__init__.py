"""Market data layer -- representative quote selection."""

from p2p_monitor.market_data.quote_selector import (
    REPRESENTATIVE_INDEX,
    select_representative_quote,
)

__all__ = ["REPRESENTATIVE_INDEX", "select_representative_quote"]
