"""Tracker orchestration — holdings, price refresh, valuation and rendering."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ..config import AppConfig
from ..holdings import add_holding, remove_holding
from ..models import Holding, PortfolioSnapshot
from ..presentation import render_snapshot
from ..sources import AlphaVantageSource, CoinGeckoSource, GoldApiSource
from ..store import HoldingsStore, JsonFileBackend
from .aggregator import PriceAggregator
from .query import QueryResponse, handle_price_query
from .refresh import RefreshController
from .valuation import calculate_holdings, portfolio_total, project_history

logger = logging.getLogger(__name__)


def build_aggregator(config: AppConfig) -> PriceAggregator:
    sources = config.price_sources
    coingecko = CoinGeckoSource(
        sources.coingecko,
        currency=config.currency,
        request_timeout=sources.request_timeout,
        partial_day_hours=config.refresh.partial_day_hours,
    )
    return PriceAggregator(
        crypto=coingecko,
        equity=AlphaVantageSource(
            sources.alpha_vantage, request_timeout=sources.request_timeout
        ),
        commodity=GoldApiSource(
            sources.goldapi,
            currency=config.currency,
            request_timeout=sources.request_timeout,
        ),
        history=coingecko,
        history_days=config.refresh.history_days,
    )


class Tracker:
    """Owns the holdings collection and keeps its valuation current."""

    def __init__(
        self,
        config: AppConfig,
        store: HoldingsStore | None = None,
        aggregator: PriceAggregator | None = None,
    ) -> None:
        self._config = config
        self._store = store or HoldingsStore(
            JsonFileBackend(config.storage.resolved_path())
        )
        self._aggregator = aggregator or build_aggregator(config)
        self._controller = RefreshController(self._aggregator)
        self._holdings: tuple[Holding, ...] = self._store.load()

    @property
    def holdings(self) -> tuple[Holding, ...]:
        return self._holdings

    @property
    def controller(self) -> RefreshController:
        return self._controller

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    async def add(self, holding: Holding) -> None:
        """Append a holding, persist the whole collection and resync prices."""
        updated = add_holding(self._holdings, holding)
        self._store.save(updated)
        self._holdings = updated
        logger.info("Added %s holding %s", holding.kind, holding.id)
        await self.sync()

    async def remove(self, holding_id: str) -> bool:
        """Remove a holding by id and resync; False if it was not present."""
        updated = remove_holding(self._holdings, holding_id)
        if len(updated) == len(self._holdings):
            logger.warning("No holding with id %s", holding_id)
            return False
        self._store.save(updated)
        self._holdings = updated
        logger.info("Removed holding %s", holding_id)
        await self.sync()
        return True

    # ------------------------------------------------------------------
    # Prices and valuation
    # ------------------------------------------------------------------

    async def sync(self) -> bool:
        """Refresh prices if the holdings need a different request."""
        return await self._controller.on_holdings_changed(self._holdings)

    async def refresh(self) -> bool:
        """Refresh prices unconditionally."""
        return await self._controller.refresh(self._holdings)

    def snapshot(self) -> PortfolioSnapshot:
        calculated = calculate_holdings(
            self._holdings,
            self._controller.prices,
            self._config.valuation.other_placeholder_unit_value,
        )
        featured_id = self._controller.featured_id
        return PortfolioSnapshot(
            as_of=datetime.now(timezone.utc),
            holdings=calculated,
            total_value=portfolio_total(calculated),
            featured_id=featured_id,
            chart=project_history(self._controller.history, self._holdings, featured_id),
            refreshing=self._controller.refreshing,
            error=self._controller.error,
            unfetchable_ids=self._unfetchable_ids(),
        )

    def _unfetchable_ids(self) -> frozenset[str]:
        supported = set(self._config.price_sources.goldapi.supported_symbols)
        return frozenset(
            h.id for h in self._holdings if h.kind == "commodity" and h.id not in supported
        )

    def render(self) -> str:
        return render_snapshot(self.snapshot())

    async def query(
        self,
        crypto_ids: str | None = None,
        equity_symbols: str | None = None,
        commodity_symbols: str | None = None,
    ) -> QueryResponse:
        return await handle_price_query(
            self._aggregator, crypto_ids, equity_symbols, commodity_symbols
        )

    # ------------------------------------------------------------------
    # Continuous monitoring
    # ------------------------------------------------------------------

    async def run_continuous(self, interval_minutes: int | None = None) -> None:
        """Refresh prices on a fixed interval, reloading holdings each time."""
        interval = interval_minutes or self._config.refresh.interval_minutes
        logger.info("Starting continuous refresh (every %d minutes)", interval)

        while True:
            try:
                self._holdings = self._store.load()
                await self.refresh()
                snapshot = self.snapshot()
                logger.info(
                    "Portfolio value: $%.2f across %d holdings",
                    snapshot.total_value,
                    len(snapshot.holdings),
                )
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in refresh loop: %s", e)
                await asyncio.sleep(60)
