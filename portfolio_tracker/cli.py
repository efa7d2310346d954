"""Command-line interface for the portfolio tracker."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from .config import load_config
from .errors import HoldingValidationError
from .holdings import build_holding
from .logging_setup import configure_logging
from .models import ASSET_KINDS
from .services import Tracker


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="portfolio-tracker",
        description="Track crypto, equity, metal, real estate and other assets",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("show", help="Refresh prices and print the portfolio")

    add_parser = sub.add_parser("add", help="Add an asset")
    add_parser.add_argument("kind", choices=ASSET_KINDS)
    add_parser.add_argument("name", help="Display name, e.g. Bitcoin")
    add_parser.add_argument("ticker", help="Ticker label, e.g. BTC")
    add_parser.add_argument("quantity", help="Shares, coins, ounces or units")
    add_parser.add_argument(
        "--id",
        dest="holding_id",
        default=None,
        help="CoinGecko id (crypto), ticker (equity) or XAU/XAG (commodity)",
    )
    add_parser.add_argument("--purchase-value", default=None, help="Total cost basis")
    add_parser.add_argument(
        "--manual-value", default=None, help="Current total value (real estate)"
    )

    remove_parser = sub.add_parser("remove", help="Remove an asset by id")
    remove_parser.add_argument("holding_id")

    prices_parser = sub.add_parser("prices", help="Query prices and print JSON")
    prices_parser.add_argument("--crypto", default=None, help="Comma-separated coin ids")
    prices_parser.add_argument("--equity", default=None, help="Comma-separated tickers")
    prices_parser.add_argument(
        "--commodity", default=None, help="Comma-separated metal symbols"
    )

    monitor_parser = sub.add_parser("monitor", help="Continuous refresh loop")
    monitor_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Refresh interval in minutes (overrides config)",
    )

    return parser


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command and return the exit code."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    tracker = Tracker(config)

    if args.command == "show":
        await tracker.sync()
        print(tracker.render())
    elif args.command == "add":
        try:
            holding = build_holding(
                kind=args.kind,
                display_name=args.name,
                ticker_label=args.ticker,
                quantity=args.quantity,
                holding_id=args.holding_id,
                purchase_value=args.purchase_value,
                manual_value=args.manual_value,
            )
            await tracker.add(holding)
        except HoldingValidationError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        print(tracker.render())
    elif args.command == "remove":
        if not await tracker.remove(args.holding_id):
            print(f"Error: no asset with id '{args.holding_id}'", file=sys.stderr)
            return 1
        print(tracker.render())
    elif args.command == "prices":
        response = await tracker.query(args.crypto, args.equity, args.commodity)
        print(json.dumps(response.body, indent=2))
        return 0 if response.ok else 1
    elif args.command == "monitor":
        await tracker.run_continuous(args.interval)
    else:
        build_parser().print_help()
        return 1
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
