"""Refresh controller — decides when the aggregator must run, one run at a time."""
from __future__ import annotations

import enum
import logging
from typing import Iterable

from ..models import AggregateResult, Holding, HistoryPoint, PriceRecord, RefreshRequest
from .aggregator import PriceAggregator, build_request

logger = logging.getLogger(__name__)


class RefreshState(enum.Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshController:
    """Keep the cached aggregate result in step with the holdings.

    A run is started only from ``IDLE`` and only when the request derived
    from the current holdings differs from the one used by the last
    completed run. Changes that arrive while a run is in flight are picked
    up when it completes.
    """

    def __init__(self, aggregator: PriceAggregator) -> None:
        self._aggregator = aggregator
        self._state = RefreshState.IDLE
        self._holdings: tuple[Holding, ...] = ()
        self._last_request: RefreshRequest | None = None
        self._force_pending = False
        self._result = AggregateResult(prices={})
        self.completed_runs = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def refreshing(self) -> bool:
        return self._state is RefreshState.REFRESHING

    @property
    def prices(self) -> dict[str, PriceRecord]:
        return self._result.prices

    @property
    def history(self) -> tuple[HistoryPoint, ...] | None:
        return self._result.history

    @property
    def featured_id(self) -> str | None:
        return self._result.featured_id

    @property
    def error(self) -> bool:
        return self._result.error

    @property
    def last_request(self) -> RefreshRequest | None:
        return self._last_request

    def needs_refresh(self, request: RefreshRequest) -> bool:
        if not self._holdings:
            # One clearing run when the last holding goes away.
            result = self._result
            has_stale = (
                bool(result.prices)
                or bool(result.history)
                or result.featured_id is not None
                or result.error
            )
            return has_stale and self._last_request != RefreshRequest()
        if self._force_pending or self._last_request is None:
            return True
        return request != self._last_request

    def invalidate(self) -> None:
        """Make the next evaluation refetch, even if a run is in flight now.

        The flag is cleared only when a run starts, so an invalidation that
        arrives mid-run is honoured once that run completes.
        """
        self._force_pending = True

    async def on_holdings_changed(self, holdings: Iterable[Holding]) -> bool:
        """Record the new holdings and refresh if needed.

        Returns True if at least one aggregator run completed in this call.
        """
        self._holdings = tuple(holdings)
        if self._state is RefreshState.REFRESHING:
            logger.debug("Refresh in flight; change will be evaluated when it completes")
            return False

        ran = False
        while True:
            request = build_request(self._holdings)
            if not self.needs_refresh(request):
                if not ran:
                    logger.debug("Prices already up to date, skipping refresh")
                return ran
            await self._run(request)
            ran = True

    async def refresh(self, holdings: Iterable[Holding]) -> bool:
        """Force a refresh for ``holdings`` regardless of the cached request."""
        self.invalidate()
        return await self.on_holdings_changed(holdings)

    async def _run(self, request: RefreshRequest) -> None:
        self._state = RefreshState.REFRESHING
        self._force_pending = False
        try:
            result = await self._aggregator.fetch(request)
        except Exception as e:
            logger.exception("Refresh failed: %s", e)
            result = AggregateResult(prices={}, featured_id=request.featured_id, error=True)
        finally:
            self._state = RefreshState.IDLE

        self._result = result
        self._last_request = request
        self.completed_runs += 1
