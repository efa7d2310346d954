"""Price source protocol — per-vendor price adapter abstraction."""
from typing import Iterable, Protocol

from ..models import PriceRecord


class PriceSource(Protocol):
    """Abstract interface for fetching current unit prices by id."""

    @property
    def source_name(self) -> str: ...

    async def fetch_prices(self, ids: Iterable[str]) -> dict[str, PriceRecord]: ...
