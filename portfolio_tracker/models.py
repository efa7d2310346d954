"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Mapping

AssetKind = Literal["crypto", "equity", "commodity", "real_estate", "other"]

ASSET_KINDS: tuple[str, ...] = ("crypto", "equity", "commodity", "real_estate", "other")

# Kinds whose price comes from a vendor adapter.
PRICED_KINDS: frozenset[str] = frozenset({"crypto", "equity", "commodity"})


@dataclass(frozen=True)
class Holding:
    """One entry in the user's portfolio."""

    id: str
    kind: str
    display_name: str = ""
    ticker_label: str = ""
    quantity: float = 0.0
    purchase_value: float | None = None
    manual_value: float | None = None


@dataclass(frozen=True)
class PriceRecord:
    """Price per unit in the reference currency."""

    price: float


PriceMap = Mapping[str, PriceRecord]


@dataclass(frozen=True)
class HistoryPoint:
    timestamp: datetime
    price: float


@dataclass(frozen=True)
class CalculatedHolding:
    """Holding plus derived valuation. Never persisted."""

    holding: Holding
    unit_price: float | None = None
    total_value: float | None = None

    @property
    def is_priced(self) -> bool:
        return self.total_value is not None


@dataclass(frozen=True)
class RefreshRequest:
    """Ids per kind (sorted, deduplicated) and the featured id for one run."""

    crypto_ids: tuple[str, ...] = ()
    equity_ids: tuple[str, ...] = ()
    commodity_ids: tuple[str, ...] = ()
    featured_id: str | None = None

    @property
    def all_ids(self) -> tuple[str, ...]:
        return tuple(sorted(set(self.crypto_ids + self.equity_ids + self.commodity_ids)))

    @property
    def is_empty(self) -> bool:
        return not self.all_ids and self.featured_id is None


@dataclass(frozen=True)
class AggregateResult:
    """Merged output of one aggregator run."""

    prices: dict[str, PriceRecord]
    history: tuple[HistoryPoint, ...] | None = None
    featured_id: str | None = None
    error: bool = False


@dataclass(frozen=True)
class ValuePoint:
    """One point of the featured holding's value-over-time projection."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class PortfolioSnapshot:
    as_of: datetime
    holdings: tuple[CalculatedHolding, ...] = ()
    total_value: float = 0.0
    featured_id: str | None = None
    chart: tuple[ValuePoint, ...] = ()
    refreshing: bool = False
    error: bool = False
    # Ids no price source will ever fetch, e.g. metals outside the allow-list.
    unfetchable_ids: frozenset[str] = frozenset()
