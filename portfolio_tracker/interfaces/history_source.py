"""History source protocol — price series for a single id."""
from typing import Protocol

from ..models import HistoryPoint


class HistorySource(Protocol):
    """Abstract interface for fetching a daily price series."""

    async def fetch_history(
        self, item_id: str, window_days: int
    ) -> tuple[HistoryPoint, ...] | None: ...
