"""Alpha Vantage equity price source."""
from __future__ import annotations

import logging
from typing import Any, Iterable

import aiohttp

from ..config import AlphaVantageConfig
from ..errors import PerIdFetchError
from ..models import PriceRecord
from .http import build_connector, build_timeout, is_success
from .pacing import RequestPacer
from .responses import Classified, ParseError, Success, VendorError, parse_price, unwrap

logger = logging.getLogger(__name__)

_ERROR_KEYS = ("Error Message", "Information", "Note")


def classify_global_quote(payload: Any, symbol: str = "") -> Classified:
    """Classify a GLOBAL_QUOTE response.

    Rate-limit and key notices come back with HTTP 200 under one of the
    ``Error Message`` / ``Information`` / ``Note`` keys instead of a quote.
    """
    if not isinstance(payload, dict):
        return ParseError("unexpected response structure")

    for key in _ERROR_KEYS:
        if key in payload:
            message = str(payload[key])
            if "free plan" in message or "premium endpoint" in message:
                message = f"Free tier limit or premium endpoint issue for {symbol}."
            return VendorError(message)

    quote = payload.get("Global Quote")
    if not isinstance(quote, dict) or not quote:
        return ParseError("no data found (possibly invalid symbol)")

    price = parse_price(quote.get("05. price"))
    if price is None:
        return ParseError("invalid price data")
    return Success(price)


class AlphaVantageSource:
    """Fetch equity prices one symbol at a time, paced under the vendor limit."""

    source_name = "alpha_vantage"

    def __init__(
        self,
        config: AlphaVantageConfig,
        request_timeout: int = 30,
        pacer: RequestPacer | None = None,
    ) -> None:
        self.base_url = config.base_url
        self.api_key = config.api_key
        self.request_timeout = request_timeout
        self._pacer = pacer or RequestPacer(config.request_delay_seconds)

    async def _fetch_one(self, session: aiohttp.ClientSession, symbol: str) -> float:
        params = {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.api_key}
        await self._pacer.wait()
        logger.debug("Requesting Alpha Vantage quote for %s", symbol)
        try:
            async with session.get(self.base_url, params=params) as response:
                if not is_success(response.status):
                    body = await response.text()
                    raise PerIdFetchError(
                        f"{symbol}: HTTP {response.status}: {body}",
                        source=self.source_name,
                        item_id=symbol,
                    )
                payload = await response.json(content_type=None)
        except PerIdFetchError:
            raise
        except Exception as e:
            raise PerIdFetchError(
                f"{symbol}: fetch failed ({e})", source=self.source_name, item_id=symbol
            ) from e

        return unwrap(
            classify_global_quote(payload, symbol),
            source=self.source_name,
            item_id=symbol,
        )

    async def fetch_prices(self, ids: Iterable[str]) -> dict[str, PriceRecord]:
        """Fetch GLOBAL_QUOTE prices for the given ticker symbols."""
        symbols = sorted({s.strip().upper() for s in ids if s and s.strip()})
        if not symbols:
            return {}
        if not self.api_key:
            logger.warning(
                "Alpha Vantage API key is not set; equity prices will not be fetched"
            )
            return {}

        logger.info("Fetching Alpha Vantage prices for [%s]", ", ".join(symbols))
        prices: dict[str, PriceRecord] = {}
        errors: list[str] = []

        async with aiohttp.ClientSession(
            connector=build_connector(), timeout=build_timeout(self.request_timeout)
        ) as session:
            for symbol in symbols:
                try:
                    price = await self._fetch_one(session, symbol)
                except PerIdFetchError as e:
                    errors.append(str(e))
                    continue
                prices[symbol] = PriceRecord(price=price)
                logger.debug("Alpha Vantage price for %s: %s", symbol, price)

        if errors:
            logger.warning("Alpha Vantage errors for some symbols: %s", "; ".join(errors))
        return prices
