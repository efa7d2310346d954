"""Holdings persistence — a JSON array written as a whole after every change."""
from __future__ import annotations

import json
import logging
import math
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable

from .errors import PersistenceParseError
from .interfaces.storage_backend import StorageBackend
from .models import ASSET_KINDS, Holding

logger = logging.getLogger(__name__)


class JsonFileBackend:
    """Single-file backend. Writes go through a temp file and ``os.replace``."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def write(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class MemoryBackend:
    """In-process backend, mainly for tests."""

    def __init__(self, payload: str | None = None) -> None:
        self.payload = payload

    def read(self) -> str | None:
        return self.payload

    def write(self, payload: str) -> None:
        self.payload = payload


def _number(value: Any, field_name: str, default: float | None = None) -> float | None:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise PersistenceParseError(f"{field_name} is not a number: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise PersistenceParseError(f"{field_name} is not a number: {value!r}") from None
    if math.isnan(number) or math.isinf(number):
        raise PersistenceParseError(f"{field_name} is not finite: {value!r}")
    return number


def _decode_holding(item: Any) -> Holding:
    if not isinstance(item, dict):
        raise PersistenceParseError(f"holding entry is not an object: {item!r}")

    item_id = item.get("id")
    if not isinstance(item_id, str) or not item_id.strip():
        raise PersistenceParseError("holding entry has no id")
    kind = item.get("kind")
    if kind not in ASSET_KINDS:
        raise PersistenceParseError(f"holding {item_id} has unknown kind {kind!r}")

    quantity = _number(item.get("quantity"), "quantity", default=0.0)
    if quantity < 0:
        raise PersistenceParseError(f"holding {item_id} has negative quantity {quantity}")

    return Holding(
        id=item_id,
        kind=kind,
        display_name=str(item.get("displayName") or ""),
        ticker_label=str(item.get("tickerLabel") or ""),
        quantity=quantity,
        purchase_value=_number(item.get("purchaseValue"), "purchaseValue"),
        manual_value=_number(item.get("manualValue"), "manualValue"),
    )


def decode_holdings(payload: str) -> tuple[Holding, ...]:
    """Parse a stored payload.

    Raises:
        PersistenceParseError: the payload is not a JSON array of holdings.
    """
    try:
        raw = json.loads(payload)
    except ValueError as e:
        raise PersistenceParseError(f"invalid JSON: {e}") from e
    if not isinstance(raw, list):
        raise PersistenceParseError("stored holdings are not a JSON array")

    holdings: list[Holding] = []
    seen: set[str] = set()
    for item in raw:
        holding = _decode_holding(item)
        if holding.id in seen:
            logger.warning("Dropping duplicate stored holding %s", holding.id)
            continue
        seen.add(holding.id)
        holdings.append(holding)
    return tuple(holdings)


def encode_holdings(holdings: Iterable[Holding]) -> str:
    data = []
    for h in holdings:
        entry: dict[str, Any] = {
            "id": h.id,
            "kind": h.kind,
            "displayName": h.display_name,
            "tickerLabel": h.ticker_label,
            "quantity": h.quantity,
        }
        if h.purchase_value is not None:
            entry["purchaseValue"] = h.purchase_value
        if h.manual_value is not None:
            entry["manualValue"] = h.manual_value
        data.append(entry)
    return json.dumps(data, indent=2)


class HoldingsStore:
    """Load/save the holdings collection through a storage backend."""

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend

    def load(self) -> tuple[Holding, ...]:
        """Load holdings; a malformed payload is discarded and yields ()."""
        payload = self._backend.read()
        if payload is None or not payload.strip():
            return ()
        try:
            holdings = decode_holdings(payload)
        except PersistenceParseError as e:
            logger.error("Failed to parse stored holdings, starting empty: %s", e)
            return ()
        logger.debug("Loaded %d holdings", len(holdings))
        return holdings

    def save(self, holdings: Iterable[Holding]) -> None:
        holdings = tuple(holdings)
        self._backend.write(encode_holdings(holdings))
        logger.debug("Saved %d holdings", len(holdings))
