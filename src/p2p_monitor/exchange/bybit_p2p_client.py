"""Bybit P2P quote source implementation via aiohttp.

Posts to the public online-ads endpoint Bybit's P2P web page uses and
maps transport and payload problems onto AdapterFailure kinds. No retry
here: the scheduler simply tries again on its next tick.

BYBIT CONVENTION: side "1" is the Buy tab (ads selling the token to us),
side "0" is the Sell tab (ads buying the token from us).
"""

import asyncio

import aiohttp

from p2p_monitor.config import MarketplaceSettings
from p2p_monitor.exceptions import AdapterFailure, FailureKind
from p2p_monitor.exchange.client import QuoteSource
from p2p_monitor.exchange.types import parse_order_book
from p2p_monitor.logging import get_logger
from p2p_monitor.models import OrderBookEntry, OrderSide

logger = get_logger(__name__)

_SIDE_CODES = {OrderSide.BUY: "1", OrderSide.SELL: "0"}


class BybitP2PClient(QuoteSource):
    """Concrete Bybit P2P order book client."""

    def __init__(
        self,
        settings: MarketplaceSettings,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._settings = settings
        self._session = session
        self._owns_session = session is None

    async def connect(self) -> None:
        """Create the HTTP session if one was not injected."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._settings.request_timeout),
                headers={"Content-Type": "application/json"},
            )
            self._owns_session = True
        logger.info(
            "bybit_p2p_connected",
            token=self._settings.token_id,
            currency=self._settings.currency_id,
        )

    async def close(self) -> None:
        """Close the HTTP session. CRITICAL: must be called to avoid leaked connectors."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.info("bybit_p2p_connection_closed")
        self._session = None

    def _build_payload(
        self, side: OrderSide, min_amount: int, bank: str | None
    ) -> dict:
        return {
            "userId": "",
            "tokenId": self._settings.token_id,
            "currencyId": self._settings.currency_id,
            "payment": [bank] if bank else [],
            "side": _SIDE_CODES[side],
            "size": str(self._settings.page_size),
            "page": "1",
            "amount": str(min_amount),
            "authMaker": False,
            "canTrade": False,
        }

    async def fetch_side(
        self,
        side: OrderSide,
        min_amount: int,
        bank: str | None = None,
    ) -> list[OrderBookEntry]:
        """Fetch one side of the P2P order book, best-ranked ad first."""
        session = self._session
        if session is None:
            await self.connect()
            session = self._session
        if session is None:
            raise AdapterFailure(FailureKind.NETWORK, "HTTP session could not be opened")

        payload = self._build_payload(side, min_amount, bank)

        try:
            async with session.post(self._settings.base_url, json=payload) as response:
                if response.status >= 400:
                    raise AdapterFailure(
                        FailureKind.NETWORK,
                        f"HTTP {response.status} for {side.value} side",
                    )
                try:
                    body = await response.json(content_type=None)
                except ValueError as exc:
                    raise AdapterFailure(
                        FailureKind.MALFORMED_RESPONSE,
                        f"non-JSON body for {side.value} side",
                    ) from exc
        except AdapterFailure:
            raise
        except asyncio.TimeoutError as exc:
            raise AdapterFailure(
                FailureKind.TIMEOUT, f"timed out fetching {side.value} side"
            ) from exc
        except aiohttp.ClientError as exc:
            raise AdapterFailure(FailureKind.NETWORK, str(exc)) from exc

        items = self._extract_items(body, side)
        entries = parse_order_book(items)
        logger.debug(
            "order_book_fetched",
            side=side.value,
            raw_items=len(items),
            entries=len(entries),
        )
        return entries

    @staticmethod
    def _extract_items(body: object, side: OrderSide) -> list:
        """Pull result.items out of a Bybit response envelope."""
        if not isinstance(body, dict):
            raise AdapterFailure(
                FailureKind.MALFORMED_RESPONSE, f"unexpected body for {side.value} side"
            )

        ret_code = body.get("ret_code", body.get("retCode", 0))
        if ret_code not in (0, "0"):
            raise AdapterFailure(
                FailureKind.MALFORMED_RESPONSE,
                f"ret_code={ret_code} msg={body.get('ret_msg', body.get('retMsg', ''))}",
            )

        result = body.get("result")
        if not isinstance(result, dict):
            raise AdapterFailure(
                FailureKind.MALFORMED_RESPONSE, f"missing result for {side.value} side"
            )

        items = result.get("items")
        if items is None:
            return []
        if not isinstance(items, list):
            raise AdapterFailure(
                FailureKind.MALFORMED_RESPONSE, f"items is not a list for {side.value} side"
            )
        return items
