"""Quote source layer -- Bybit P2P order book integration via aiohttp."""

from p2p_monitor.exchange.bybit_p2p_client import BybitP2PClient
from p2p_monitor.exchange.client import QuoteSource
from p2p_monitor.exchange.types import bank_display_name, parse_order_book

__all__ = ["BybitP2PClient", "QuoteSource", "bank_display_name", "parse_order_book"]
