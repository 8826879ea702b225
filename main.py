"""CLI entry point for the Yahoo market history client."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Optional, Sequence

from data_providers.base import YahooRequest, after, before, between, request, with_daily, with_weekly
from data_providers.exceptions import YahooApiError
from data_providers.yahoo import Price, YahooHistoryClient
from market_history.config_manager import ConfigManager, MarketHistoryConfig

logger = logging.getLogger("market_history.cli")

INTERVAL_CHOICES = ("daily", "weekly")


@dataclass
class AppContext:
    manager: ConfigManager
    config: MarketHistoryConfig
    client: YahooHistoryClient


def configure_logging(verbose: bool, level: int = logging.INFO) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else level, format="%(levelname)s: %(message)s")


def build_context(args: argparse.Namespace) -> AppContext:
    manager_kwargs: Dict[str, Path] = {}
    if args.defaults:
        manager_kwargs["default_path"] = Path(args.defaults)
    if args.settings:
        manager_kwargs["user_path"] = Path(args.settings)
    manager = ConfigManager(**manager_kwargs)
    config = manager.load(force_reload=args.force_config_reload)
    return AppContext(manager=manager, config=config, client=YahooHistoryClient.from_config(config))


def parse_symbol(value: str) -> str:
    if not value.strip():
        raise argparse.ArgumentTypeError("Ticker symbol must not be empty")
    return value


def parse_iso_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid ISO date '{value}'") from exc


def build_request(
    symbol: str,
    interval: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> YahooRequest:
    """Map CLI flags onto the request builder."""

    req = request(symbol)
    if interval == "daily":
        req = with_daily(req)
    elif interval == "weekly":
        req = with_weekly(req)

    if start and end:
        if start >= end:
            raise ValueError("Start date must be before end date")
        req = between((start, end), req)
    elif start:
        req = after(start, req)
    elif end:
        req = before(end, req)
    return req


def format_price(symbol: str, price: Price) -> str:
    return (
        f"{symbol} {price.date.isoformat()}: open={price.open:.4f} high={price.high:.4f} "
        f"low={price.low:.4f} close={price.close:.4f} adj_close={price.adj_close:.4f} "
        f"volume={price.volume:.0f}"
    )


def handle_latest(args: argparse.Namespace, ctx: AppContext) -> int:
    symbol = args.symbol
    try:
        price = ctx.client.fetch_latest(symbol)
    except YahooApiError as exc:
        logger.error("Failed to fetch latest price for %s: %s", symbol, exc)
        return 1

    print(format_price(symbol, price))
    return 0


def handle_history(args: argparse.Namespace, ctx: AppContext) -> int:
    try:
        req = build_request(args.symbol, args.interval, args.start, args.end)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    try:
        frame = ctx.client.fetch_frame(req)
    except YahooApiError as exc:
        logger.error("Failed to fetch history for %s: %s", req.ticker.symbol, exc)
        return 1

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(output, index=True, index_label="date")
        print(f"Saved {len(frame)} rows for {req.ticker.symbol} to {output}")
    else:
        print(frame.to_string())
    return 0


def handle_url(args: argparse.Namespace, ctx: AppContext) -> int:
    try:
        req = build_request(args.symbol, args.interval, args.start, args.end)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    print(ctx.client.url_for(req))
    return 0


def _add_query_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("symbol", type=parse_symbol, help="Ticker symbol, e.g. AAPL")
    parser.add_argument("--interval", choices=INTERVAL_CHOICES, help="Sampling interval (default: upstream default)")
    parser.add_argument("--start", type=parse_iso_date, help="First day to include (YYYY-MM-DD)")
    parser.add_argument("--end", type=parse_iso_date, help="Day to stop before, exclusive (YYYY-MM-DD)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Yahoo Finance market history CLI")
    parser.add_argument("--settings", type=Path, help="Path to user settings override JSON")
    parser.add_argument("--defaults", type=Path, help="Path to alternate default settings JSON")
    parser.add_argument("--force-config-reload", action="store_true", help="Reload configuration from disk")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    latest = subparsers.add_parser("latest", help="Print the latest price for a ticker")
    latest.add_argument("symbol", type=parse_symbol, help="Ticker symbol, e.g. AAPL")
    latest.set_defaults(handler=handle_latest)

    history = subparsers.add_parser("history", help="Download price history for a ticker")
    _add_query_arguments(history)
    history.add_argument("--output", type=Path, help="Optional CSV path for the downloaded prices")
    history.set_defaults(handler=handle_history)

    url = subparsers.add_parser("url", help="Print the download URL without sending a request")
    _add_query_arguments(url)
    url.set_defaults(handler=handle_url)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    ctx = build_context(args)
    configure_logging(args.verbose, ctx.config.logging.numeric_level())

    if not hasattr(args, "handler"):
        parser.print_help()
        return 0

    return args.handler(args, ctx)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
