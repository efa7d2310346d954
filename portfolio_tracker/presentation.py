"""Plain-text rendering of a portfolio snapshot."""
from __future__ import annotations

from .models import PRICED_KINDS, CalculatedHolding, PortfolioSnapshot

UNAVAILABLE = "N/A"
LOADING = "Loading..."
ERROR = "Error"

_COLUMNS = ("Name", "Symbol/ID", "Type", "Quantity", "Current Price", "Current Value")


def format_money(value: float, decimals: int = 2) -> str:
    return f"${value:,.{decimals}f}"


def _price_decimals(calc: CalculatedHolding) -> int:
    price = calc.unit_price
    if calc.holding.kind == "crypto" and price is not None and price < 1:
        return 8
    return 2


def _missing_label(
    calc: CalculatedHolding, refreshing: bool, error: bool, fetchable: bool
) -> str:
    """Explain a missing value: fetch error, fetch in progress, or unavailable."""
    if fetchable and calc.holding.kind in PRICED_KINDS:
        if error:
            return ERROR
        if refreshing:
            return LOADING
    return UNAVAILABLE


def price_cell(
    calc: CalculatedHolding,
    refreshing: bool = False,
    error: bool = False,
    fetchable: bool = True,
) -> str:
    if calc.unit_price is None:
        return _missing_label(calc, refreshing, error, fetchable)
    return format_money(calc.unit_price, _price_decimals(calc))


def value_cell(
    calc: CalculatedHolding,
    refreshing: bool = False,
    error: bool = False,
    fetchable: bool = True,
) -> str:
    if calc.total_value is None:
        return _missing_label(calc, refreshing, error, fetchable)
    return format_money(calc.total_value)


def _row(calc: CalculatedHolding, snapshot: PortfolioSnapshot) -> tuple[str, ...]:
    h = calc.holding
    fetchable = h.id not in snapshot.unfetchable_ids
    return (
        h.display_name,
        h.id,
        h.kind.replace("_", " ").title(),
        f"{h.quantity:,g}",
        price_cell(calc, snapshot.refreshing, snapshot.error, fetchable),
        value_cell(calc, snapshot.refreshing, snapshot.error, fetchable),
    )


def render_table(snapshot: PortfolioSnapshot) -> str:
    if not snapshot.holdings:
        return "No assets added yet."

    rows = [_COLUMNS] + [_row(c, snapshot) for c in snapshot.holdings]
    widths = [max(len(r[i]) for r in rows) for i in range(len(_COLUMNS))]
    lines = []
    for index, row in enumerate(rows):
        lines.append("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip())
        if index == 0:
            lines.append("  ".join("-" * w for w in widths))
    return "\n".join(lines)


def render_total(snapshot: PortfolioSnapshot) -> str:
    line = f"Total Portfolio Value: {format_money(snapshot.total_value)}"
    if snapshot.refreshing:
        line += " (Updating data...)"
    return line


def render_chart(snapshot: PortfolioSnapshot) -> str:
    """Value-over-time of the featured holding, one line per day."""
    if not snapshot.chart:
        if snapshot.featured_id:
            return f"No history available for {snapshot.featured_id}."
        return "Add a crypto asset to see its value over time."

    lines = [f"Value over time: {snapshot.featured_id}"]
    for point in snapshot.chart:
        lines.append(f"  {point.timestamp:%Y-%m-%d}  {format_money(point.value)}")
    return "\n".join(lines)


def render_snapshot(snapshot: PortfolioSnapshot) -> str:
    return "\n\n".join(
        (
            render_total(snapshot),
            render_table(snapshot),
            render_chart(snapshot),
            f"{snapshot.as_of:%Y-%m-%d %H:%M:%S} UTC",
        )
    )
