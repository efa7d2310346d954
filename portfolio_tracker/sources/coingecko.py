"""CoinGecko crypto price and history source."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

import aiohttp

from ..config import CoinGeckoConfig
from ..errors import BatchFetchError, HistoryUnavailable, PerIdFetchError
from ..models import HistoryPoint, PriceRecord
from .http import build_connector, build_timeout, is_success
from .responses import Classified, ParseError, Success, VendorError, parse_price, unwrap

logger = logging.getLogger(__name__)


def classify_batch_payload(payload: Any) -> VendorError | ParseError | None:
    """Detect whole-response problems in a /simple/price payload.

    CoinGecko reports throttling as ``{"status": {"error_code": 429, ...}}``
    and some failures as ``{"error": "..."}``, both with HTTP 200 at times.
    """
    if not isinstance(payload, dict):
        return ParseError(f"expected object, got {type(payload).__name__}")
    status = payload.get("status")
    if isinstance(status, dict) and "error_code" in status:
        return VendorError(str(status.get("error_message") or status["error_code"]))
    if isinstance(payload.get("error"), str):
        return VendorError(payload["error"])
    return None


def classify_coin_entry(entry: Any, vs_currency: str) -> Classified:
    if entry is None:
        return ParseError("id missing from response")
    if not isinstance(entry, dict):
        return ParseError("malformed price entry")
    price = parse_price(entry.get(vs_currency))
    if price is None:
        return ParseError(f"missing or invalid '{vs_currency}' price")
    return Success(price)


def drop_partial_day(
    points: tuple[HistoryPoint, ...],
    now: datetime,
    partial_day_hours: float = 23.0,
) -> tuple[HistoryPoint, ...]:
    """Drop the trailing point if it is a still-accumulating 'today' bucket."""
    if not points:
        return points
    if now - points[-1].timestamp < timedelta(hours=partial_day_hours):
        return points[:-1]
    return points


def parse_market_chart(payload: Any) -> tuple[HistoryPoint, ...]:
    """Parse ``{"prices": [[ms, price], ...]}`` into ordered history points."""
    if not isinstance(payload, dict) or not isinstance(payload.get("prices"), list):
        raise ValueError("response has no 'prices' series")

    points: list[HistoryPoint] = []
    for entry in payload["prices"]:
        if not isinstance(entry, (list, tuple)) or len(entry) < 2:
            continue
        ts_ms, raw_price = entry[0], entry[1]
        price = parse_price(raw_price)
        if price is None or isinstance(ts_ms, bool) or not isinstance(ts_ms, (int, float)):
            continue
        points.append(
            HistoryPoint(
                timestamp=datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc),
                price=price,
            )
        )
    points.sort(key=lambda p: p.timestamp)
    return tuple(points)


class CoinGeckoSource:
    """Fetch crypto prices (one batched call) and daily history from CoinGecko."""

    source_name = "coingecko"

    def __init__(
        self,
        config: CoinGeckoConfig,
        currency: str = "USD",
        request_timeout: int = 30,
        partial_day_hours: float = 23.0,
    ) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.api_key = config.api_key
        self.vs_currency = currency.lower()
        self.request_timeout = request_timeout
        self.partial_day_hours = partial_day_hours

    def _headers(self) -> dict[str, str]:
        headers = {"accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        return headers

    async def _get_json(self, url: str, params: dict[str, str]) -> Any:
        async with aiohttp.ClientSession(
            connector=build_connector(),
            timeout=build_timeout(self.request_timeout),
            headers=self._headers(),
        ) as session:
            async with session.get(url, params=params) as response:
                if not is_success(response.status):
                    body = await response.text()
                    raise BatchFetchError(
                        f"CoinGecko HTTP {response.status}: {body}",
                        source=self.source_name,
                        status_code=response.status,
                    )
                return await response.json(content_type=None)

    async def fetch_prices(self, ids: Iterable[str]) -> dict[str, PriceRecord]:
        """Fetch current prices for CoinGecko coin ids in a single request.

        Raises:
            BatchFetchError: the batch request itself failed (transport error
                or non-2xx status).
        """
        wanted = sorted({i.strip().lower() for i in ids if i and i.strip()})
        if not wanted:
            return {}

        url = f"{self.base_url}/simple/price"
        params = {"ids": ",".join(wanted), "vs_currencies": self.vs_currency}
        logger.info("Fetching CoinGecko prices for [%s]", ", ".join(wanted))

        try:
            payload = await self._get_json(url, params)
        except BatchFetchError:
            raise
        except Exception as e:
            raise BatchFetchError(
                f"CoinGecko request failed: {e}", source=self.source_name
            ) from e

        problem = classify_batch_payload(payload)
        if problem is not None:
            logger.warning("CoinGecko returned no prices: %s", problem)
            return {}

        prices: dict[str, PriceRecord] = {}
        for item_id in wanted:
            try:
                price = unwrap(
                    classify_coin_entry(payload.get(item_id), self.vs_currency),
                    source=self.source_name,
                    item_id=item_id,
                )
            except PerIdFetchError as e:
                logger.warning("CoinGecko: %s", e)
                continue
            prices[item_id] = PriceRecord(price=price)
            logger.debug("CoinGecko price for %s: %s", item_id, price)

        return prices

    async def _fetch_history_points(
        self, item_id: str, window_days: int
    ) -> tuple[HistoryPoint, ...]:
        url = f"{self.base_url}/coins/{item_id}/market_chart"
        params = {
            "vs_currency": self.vs_currency,
            "days": str(window_days),
            "interval": "daily",
        }
        try:
            payload = await self._get_json(url, params)
            points = parse_market_chart(payload)
        except Exception as e:
            raise HistoryUnavailable(
                f"history for {item_id} unavailable: {e}",
                source=self.source_name,
                item_id=item_id,
            ) from e
        if not points:
            raise HistoryUnavailable(
                f"history for {item_id} is empty",
                source=self.source_name,
                item_id=item_id,
            )
        return points

    async def fetch_history(
        self, item_id: str, window_days: int
    ) -> tuple[HistoryPoint, ...] | None:
        """Fetch a daily price series, or None when it cannot be produced."""
        item_id = item_id.strip().lower()
        logger.info("Fetching %d-day CoinGecko history for %s", window_days, item_id)
        try:
            points = await self._fetch_history_points(item_id, window_days)
        except HistoryUnavailable as e:
            logger.warning("CoinGecko: %s", e)
            return None

        trimmed = drop_partial_day(
            points, datetime.now(timezone.utc), self.partial_day_hours
        )
        if len(trimmed) < len(points):
            logger.debug("Removed incomplete last history point for %s", item_id)
        return trimmed
