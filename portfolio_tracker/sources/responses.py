"""Tagged results for vendor response classification."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Union

from ..errors import PerIdFetchError


@dataclass(frozen=True)
class Success:
    price: float


@dataclass(frozen=True)
class VendorError:
    """200 response carrying a vendor error or rate-limit message."""

    message: str


@dataclass(frozen=True)
class ParseError:
    reason: str


Classified = Union[Success, VendorError, ParseError]


def parse_price(value: Any) -> float | None:
    """Coerce a vendor price field to a non-negative finite float, else None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(price) or math.isinf(price) or price < 0:
        return None
    return price


def unwrap(classified: Classified, *, source: str, item_id: str) -> float:
    """Return the price of a ``Success`` or raise ``PerIdFetchError``."""
    if isinstance(classified, Success):
        return classified.price
    if isinstance(classified, VendorError):
        raise PerIdFetchError(
            f"{item_id}: vendor message: {classified.message}",
            source=source,
            item_id=item_id,
        )
    raise PerIdFetchError(
        f"{item_id}: {classified.reason}", source=source, item_id=item_id
    )
