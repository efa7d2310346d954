"""Price aggregation — runs every price source concurrently and merges results."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from ..errors import BatchFetchError
from ..interfaces.history_source import HistorySource
from ..interfaces.price_source import PriceSource
from ..models import AggregateResult, Holding, HistoryPoint, PriceRecord, RefreshRequest

logger = logging.getLogger(__name__)


def _ids_of_kind(holdings: Iterable[Holding], kind: str) -> tuple[str, ...]:
    return tuple(sorted({h.id for h in holdings if h.kind == kind and h.id}))


def featured_id_for(holdings: Iterable[Holding]) -> str | None:
    """The first crypto holding in collection order, if any."""
    return next((h.id for h in holdings if h.kind == "crypto" and h.id), None)


def build_request(holdings: Iterable[Holding]) -> RefreshRequest:
    """Derive the ids to price, per kind, and the featured id."""
    holdings = tuple(holdings)
    return RefreshRequest(
        crypto_ids=_ids_of_kind(holdings, "crypto"),
        equity_ids=_ids_of_kind(holdings, "equity"),
        commodity_ids=_ids_of_kind(holdings, "commodity"),
        featured_id=featured_id_for(holdings),
    )


class PriceAggregator:
    """Fan out to the crypto, equity and commodity sources plus history."""

    def __init__(
        self,
        crypto: PriceSource,
        equity: PriceSource,
        commodity: PriceSource,
        history: HistorySource,
        history_days: int = 90,
    ) -> None:
        self._crypto = crypto
        self._equity = equity
        self._commodity = commodity
        self._history = history
        self.history_days = history_days

    async def _history_or_none(
        self, featured_id: str | None
    ) -> tuple[HistoryPoint, ...] | None:
        if featured_id is None:
            return None
        return await self._history.fetch_history(featured_id, self.history_days)

    @staticmethod
    def _prices_or_empty(source: PriceSource, result: Any) -> dict[str, PriceRecord]:
        if isinstance(result, BatchFetchError):
            logger.error("%s batch failed: %s", source.source_name, result)
            return {}
        if isinstance(result, Exception):
            logger.error(
                "%s failed unexpectedly: %s", source.source_name, result, exc_info=result
            )
            return {}
        if isinstance(result, BaseException):
            raise result
        return dict(result)

    async def fetch(self, request: RefreshRequest) -> AggregateResult:
        """Run all four requests in parallel and merge the price maps.

        A failing source contributes nothing; only an unexpected failure of
        the group as a whole yields an empty result flagged as an error.
        """
        logger.info(
            "Refreshing prices — crypto: %d, equity: %d, commodity: %d, featured: %s",
            len(request.crypto_ids),
            len(request.equity_ids),
            len(request.commodity_ids),
            request.featured_id or "none",
        )
        try:
            results = await asyncio.gather(
                self._crypto.fetch_prices(request.crypto_ids),
                self._equity.fetch_prices(request.equity_ids),
                self._commodity.fetch_prices(request.commodity_ids),
                self._history_or_none(request.featured_id),
                return_exceptions=True,
            )

            prices: dict[str, PriceRecord] = {}
            sources = (self._crypto, self._equity, self._commodity)
            for source, result in zip(sources, results[:3]):
                prices.update(self._prices_or_empty(source, result))

            history = results[3]
            if isinstance(history, Exception):
                logger.error("History fetch failed unexpectedly: %s", history)
                history = None
            elif isinstance(history, BaseException):
                raise history
        except Exception as e:
            logger.exception("Price refresh failed: %s", e)
            return AggregateResult(
                prices={}, history=None, featured_id=request.featured_id, error=True
            )

        logger.info("Merged %d prices", len(prices))
        return AggregateResult(
            prices=prices,
            history=history,
            featured_id=request.featured_id,
        )

    async def fetch_for_holdings(self, holdings: Iterable[Holding]) -> AggregateResult:
        return await self.fetch(build_request(holdings))
