"""Holding construction from form input, and whole-collection add/remove."""
from __future__ import annotations

import logging
import math
import uuid
from typing import Iterable

from .errors import DuplicateHoldingError, HoldingValidationError
from .models import ASSET_KINDS, Holding

logger = logging.getLogger(__name__)

# Kinds that cannot be priced without a vendor id.
_ID_REQUIRED_KINDS = ("crypto", "equity")


def normalize_id(kind: str, raw_id: str) -> str:
    """Trim and case an id the way its vendor expects it."""
    value = raw_id.strip()
    if kind == "crypto":
        return value.lower()
    if kind in ("equity", "commodity"):
        return value.upper()
    return value


def generate_id(kind: str) -> str:
    return f"asset-{kind}-{uuid.uuid4().hex[:12]}"


def _optional_amount(value: float | str | None, field_name: str) -> float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise HoldingValidationError(f"{field_name} must be a number") from None
    if math.isnan(amount) or math.isinf(amount):
        raise HoldingValidationError(f"{field_name} must be a finite number")
    return amount


def build_holding(
    *,
    kind: str,
    display_name: str,
    ticker_label: str,
    quantity: float | str | None,
    holding_id: str | None = None,
    purchase_value: float | str | None = None,
    manual_value: float | str | None = None,
) -> Holding:
    """Validate form input and build a Holding.

    Crypto and equity holdings need a vendor id. Other kinds get an
    auto-generated id when none is given. The manual value is kept only
    for real estate.
    """
    kind = (kind or "").strip().lower()
    if kind not in ASSET_KINDS:
        raise HoldingValidationError(
            f"Unknown asset kind '{kind}'; expected one of {', '.join(ASSET_KINDS)}"
        )
    if not display_name or not display_name.strip():
        raise HoldingValidationError("Name is required")
    if not ticker_label or not ticker_label.strip():
        raise HoldingValidationError("Symbol is required")

    qty = _optional_amount(quantity, "Quantity")
    if qty is None:
        qty = 0.0
    if qty < 0:
        raise HoldingValidationError("Quantity must not be negative")

    item_id = normalize_id(kind, holding_id or "")
    if not item_id:
        if kind in _ID_REQUIRED_KINDS:
            raise HoldingValidationError(
                "An id is required: CoinGecko id for crypto, ticker symbol for equity"
            )
        item_id = generate_id(kind)
        logger.debug("Auto-generated id %s for %s holding", item_id, kind)

    return Holding(
        id=item_id,
        kind=kind,
        display_name=display_name.strip(),
        ticker_label=ticker_label.strip(),
        quantity=qty,
        purchase_value=_optional_amount(purchase_value, "Purchase value"),
        manual_value=(
            _optional_amount(manual_value, "Current value") if kind == "real_estate" else None
        ),
    )


def add_holding(holdings: Iterable[Holding], holding: Holding) -> tuple[Holding, ...]:
    """Return a new collection with ``holding`` appended.

    Raises:
        DuplicateHoldingError: a holding with the same id already exists.
    """
    current = tuple(holdings)
    if any(h.id == holding.id for h in current):
        raise DuplicateHoldingError(holding.id)
    return current + (holding,)


def remove_holding(holdings: Iterable[Holding], holding_id: str) -> tuple[Holding, ...]:
    """Return a new collection without the holding ``holding_id``."""
    return tuple(h for h in holdings if h.id != holding_id)
