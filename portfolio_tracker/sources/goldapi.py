"""GoldAPI.io precious-metal price source."""
from __future__ import annotations

import logging
import re
from typing import Any, Iterable

import aiohttp

from ..config import GoldApiConfig
from ..errors import PerIdFetchError
from ..models import PriceRecord
from .http import build_connector, build_timeout, is_success
from .pacing import RequestPacer
from .responses import Classified, ParseError, Success, VendorError, parse_price, unwrap

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{8}$")


def classify_metal_quote(payload: Any) -> Classified:
    """Classify a GoldAPI response; errors arrive as ``{"error": "..."}``."""
    if not isinstance(payload, dict):
        return ParseError("unexpected response structure")
    if "error" in payload:
        return VendorError(str(payload["error"]))
    raw = payload.get("price")
    price = parse_price(raw) if isinstance(raw, (int, float)) else None
    if price is None:
        return ParseError("invalid price data")
    return Success(price)


class GoldApiSource:
    """Fetch spot prices (per troy ounce) for the supported metal symbols."""

    source_name = "goldapi"

    def __init__(
        self,
        config: GoldApiConfig,
        currency: str = "USD",
        request_timeout: int = 30,
        pacer: RequestPacer | None = None,
    ) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.api_key = config.api_key
        self.currency = currency.upper()
        self.supported_symbols = frozenset(s.upper() for s in config.supported_symbols)
        self.request_timeout = request_timeout
        self._pacer = pacer or RequestPacer(config.request_delay_seconds)

    def _headers(self) -> dict[str, str]:
        return {"x-access-token": self.api_key, "Content-Type": "application/json"}

    def supported(self, ids: Iterable[str]) -> list[str]:
        """Uppercase, deduplicate and drop symbols outside the allow-list."""
        wanted = {s.strip().upper() for s in ids if s and s.strip()}
        dropped = sorted(wanted - self.supported_symbols)
        if dropped:
            logger.info("GoldAPI: skipping unsupported symbols [%s]", ", ".join(dropped))
        return sorted(wanted & self.supported_symbols)

    async def _fetch_quote(
        self, session: aiohttp.ClientSession, symbol: str, path: str
    ) -> float:
        url = f"{self.base_url}/{path}"
        await self._pacer.wait()
        logger.debug("Requesting GoldAPI %s", url)
        try:
            async with session.get(url) as response:
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

        return unwrap(classify_metal_quote(payload), source=self.source_name, item_id=symbol)

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            connector=build_connector(),
            timeout=build_timeout(self.request_timeout),
            headers=self._headers(),
        )

    async def fetch_prices(self, ids: Iterable[str]) -> dict[str, PriceRecord]:
        """Fetch current spot prices, one request per supported symbol."""
        symbols = self.supported(ids)
        if not symbols:
            return {}
        if not self.api_key:
            logger.warning("GoldAPI key is not set; commodity prices will not be fetched")
            return {}

        logger.info("Fetching GoldAPI prices for [%s]", ", ".join(symbols))
        prices: dict[str, PriceRecord] = {}
        errors: list[str] = []

        async with self._session() as session:
            for symbol in symbols:
                try:
                    price = await self._fetch_quote(
                        session, symbol, f"{symbol}/{self.currency}"
                    )
                except PerIdFetchError as e:
                    errors.append(str(e))
                    continue
                prices[symbol] = PriceRecord(price=price)
                logger.debug("GoldAPI price for %s: %s", symbol, price)

        if errors:
            logger.warning("GoldAPI errors for some symbols: %s", "; ".join(errors))
        return prices

    async def fetch_price_on_date(self, symbol: str, date: str) -> PriceRecord | None:
        """Fetch the closing price for ``symbol`` on ``date`` (YYYYMMDD)."""
        symbol = symbol.strip().upper()
        if symbol not in self.supported_symbols:
            logger.warning("GoldAPI: unsupported symbol '%s'", symbol)
            return None
        if not _DATE_RE.match(date):
            logger.warning("GoldAPI: invalid date '%s', expected YYYYMMDD", date)
            return None
        if not self.api_key:
            logger.warning("GoldAPI key is not set; historical price will not be fetched")
            return None

        try:
            async with self._session() as session:
                price = await self._fetch_quote(
                    session, symbol, f"{symbol}/{self.currency}/{date}"
                )
        except PerIdFetchError as e:
            logger.warning("GoldAPI price for %s on %s unavailable: %s", symbol, date, e)
            return None
        return PriceRecord(price=price)
