"""Valuation rules — pure functions over holdings and a price map."""
from __future__ import annotations

import logging
from typing import Iterable

from ..models import (
    PRICED_KINDS,
    CalculatedHolding,
    Holding,
    HistoryPoint,
    PriceMap,
    ValuePoint,
)

logger = logging.getLogger(__name__)

# Stand-in unit value for "other" holdings without a purchase value. This is
# a placeholder, not a market valuation.
OTHER_PLACEHOLDER_UNIT_VALUE = 50.0


def _per_unit(total_value: float, quantity: float) -> float | None:
    return total_value / quantity if quantity > 0 else None


def compute_value(
    holding: Holding,
    prices: PriceMap,
    other_unit_value: float = OTHER_PLACEHOLDER_UNIT_VALUE,
) -> tuple[float | None, float | None]:
    """Return ``(unit_price, total_value)`` for one holding.

    Rules, first match wins:
      1. priced kind with a price entry: quantity * price
      2. real estate with a manual value: the manual value
      3. other: purchase value, else quantity * ``other_unit_value``
      4. anything else: unavailable (None, None)
    """
    record = prices.get(holding.id)
    if holding.kind in PRICED_KINDS and record is not None:
        unit_price = record.price
        return unit_price, holding.quantity * unit_price

    if holding.kind == "real_estate" and holding.manual_value is not None:
        total = holding.manual_value
        return _per_unit(total, holding.quantity), total

    if holding.kind == "other":
        if holding.purchase_value is not None:
            total = holding.purchase_value
        else:
            total = holding.quantity * other_unit_value
        return _per_unit(total, holding.quantity), total

    return None, None


def calculate_holdings(
    holdings: Iterable[Holding],
    prices: PriceMap,
    other_unit_value: float = OTHER_PLACEHOLDER_UNIT_VALUE,
) -> tuple[CalculatedHolding, ...]:
    calculated: list[CalculatedHolding] = []
    for holding in holdings:
        unit_price, total_value = compute_value(holding, prices, other_unit_value)
        if total_value is None:
            logger.debug("No value available for %s (%s)", holding.id, holding.kind)
        calculated.append(
            CalculatedHolding(holding=holding, unit_price=unit_price, total_value=total_value)
        )
    return tuple(calculated)


def portfolio_total(calculated: Iterable[CalculatedHolding]) -> float:
    """Sum of all total values; unavailable values count as zero."""
    return sum((c.total_value or 0.0 for c in calculated), 0.0)


def project_history(
    history: Iterable[HistoryPoint] | None,
    holdings: Iterable[Holding],
    featured_id: str | None,
) -> tuple[ValuePoint, ...]:
    """Scale the featured id's price history by its current quantity."""
    if not history or featured_id is None:
        return ()
    holding = next((h for h in holdings if h.id == featured_id), None)
    if holding is None:
        return ()
    return tuple(
        ValuePoint(timestamp=p.timestamp, value=p.price * holding.quantity) for p in history
    )
