"""Price query interface — comma-separated id lists in, JSON-ready body out."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..models import RefreshRequest
from .aggregator import PriceAggregator

logger = logging.getLogger(__name__)


def parse_id_list(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated list, dropping blanks and keeping order."""
    if not raw:
        return ()
    seen: dict[str, None] = {}
    for part in raw.split(","):
        part = part.strip()
        if part:
            seen.setdefault(part, None)
    return tuple(seen)


@dataclass(frozen=True)
class QueryResponse:
    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _empty_body(featured_id: str | None) -> dict[str, Any]:
    return {"priceMap": {}, "historySeries": [], "featuredId": featured_id, "error": True}


async def handle_price_query(
    aggregator: PriceAggregator,
    crypto_ids: str | None = None,
    equity_symbols: str | None = None,
    commodity_symbols: str | None = None,
) -> QueryResponse:
    """Fetch prices for the given lists; the first crypto id is featured."""
    crypto = tuple(i.lower() for i in parse_id_list(crypto_ids))
    equity = tuple(s.upper() for s in parse_id_list(equity_symbols))
    commodity = tuple(s.upper() for s in parse_id_list(commodity_symbols))
    featured_id = crypto[0] if crypto else None

    request = RefreshRequest(
        crypto_ids=tuple(sorted(set(crypto))),
        equity_ids=tuple(sorted(set(equity))),
        commodity_ids=tuple(sorted(set(commodity))),
        featured_id=featured_id,
    )
    logger.info(
        "Price query — crypto: [%s], equity: [%s], commodity: [%s]",
        ", ".join(crypto),
        ", ".join(equity),
        ", ".join(commodity),
    )

    try:
        result = await aggregator.fetch(request)
    except Exception as e:
        logger.exception("Price query failed: %s", e)
        return QueryResponse(status=500, body=_empty_body(featured_id))

    if result.error:
        return QueryResponse(status=500, body=_empty_body(featured_id))

    body = {
        "priceMap": {k: {"price": v.price} for k, v in sorted(result.prices.items())},
        "historySeries": [
            {"timestamp": p.timestamp.isoformat(), "price": p.price}
            for p in (result.history or ())
        ],
        "featuredId": result.featured_id,
        "error": False,
    }
    return QueryResponse(status=200, body=body)
