"""Request model and URL construction for the Yahoo history endpoint."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Callable, Optional, Union
from urllib.parse import quote, urlencode

DEFAULT_BASE_URL = "https://query1.finance.yahoo.com/v7/finance/download"

# 1900-01-01T00:00:00Z, used as the lower bound when only an end day is known.
EARLIEST_EPOCH = -2208988800

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Ticker:
    """Opaque ticker symbol."""

    symbol: str


class Interval(Enum):
    DAILY = "1d"
    WEEKLY = "1wk"


@dataclass(frozen=True)
class After:
    """All data on or after ``day``."""

    day: date


@dataclass(frozen=True)
class Before:
    """All data strictly before ``day``."""

    day: date


@dataclass(frozen=True)
class Range:
    """Data from ``start`` (inclusive) up to ``end`` (exclusive)."""

    start: date
    end: date


TimeRange = Union[After, Before, Range]


@dataclass(frozen=True)
class YahooRequest:
    """Parameters for a single history download."""

    ticker: Ticker
    interval: Optional[Interval] = None
    period: Optional[TimeRange] = None


def request(symbol: str) -> YahooRequest:
    """Return an unparameterised request for *symbol*.

    Sent as-is, the request yields the latest price(s) for the ticker.
    """

    return YahooRequest(ticker=Ticker(symbol))


def with_daily(req: YahooRequest) -> YahooRequest:
    return replace(req, interval=Interval.DAILY)


def with_weekly(req: YahooRequest) -> YahooRequest:
    """Ask for weekly buckets.

    Yahoo anchors weeks to calendar boundaries, so the first record returned
    can be dated before the start of the requested period.
    """

    return replace(req, interval=Interval.WEEKLY)


def after(day: date, req: YahooRequest) -> YahooRequest:
    return replace(req, period=After(day))


def before(day: date, req: YahooRequest) -> YahooRequest:
    return replace(req, period=Before(day))


def between(bounds: tuple[date, date], req: YahooRequest) -> YahooRequest:
    start, end = bounds
    return replace(req, period=Range(start, end))


def day(year: int, month: int, day_of_month: int) -> date:
    """Shorthand for ``datetime.date``."""

    return date(year, month, day_of_month)


def day_to_epoch(value: date) -> int:
    """Unix seconds for *value* at UTC midnight."""

    return int(datetime.combine(value, time.min, tzinfo=timezone.utc).timestamp())


def instant_to_epoch(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def _period_bounds(period: Optional[TimeRange], clock: Clock) -> tuple[Optional[int], int]:
    if period is None:
        return None, instant_to_epoch(clock())
    if isinstance(period, After):
        return day_to_epoch(period.day), instant_to_epoch(clock())
    if isinstance(period, Before):
        return EARLIEST_EPOCH, day_to_epoch(period.day)
    if isinstance(period, Range):
        return day_to_epoch(period.start), day_to_epoch(period.end)
    raise TypeError(f"Unsupported period type: {type(period).__name__}")


def request_url(
    req: YahooRequest,
    clock: Clock = utc_now,
    base_url: str = DEFAULT_BASE_URL,
) -> str:
    """Return the fully parameterised download URL for *req*.

    *clock* is only called when the period leaves the upper bound open.
    """

    lower, upper = _period_bounds(req.period, clock)

    params: list[tuple[str, str]] = []
    if lower is not None:
        params.append(("period1", str(lower)))
    params.append(("period2", str(upper)))
    if req.interval is not None:
        params.append(("interval", req.interval.value))
    params.append(("events", "history"))

    symbol = quote(req.ticker.symbol, safe="")
    return f"{base_url.rstrip('/')}/{symbol}?{urlencode(params)}"


__all__ = [
    "After",
    "Before",
    "Clock",
    "DEFAULT_BASE_URL",
    "EARLIEST_EPOCH",
    "Interval",
    "Range",
    "Ticker",
    "TimeRange",
    "YahooRequest",
    "after",
    "before",
    "between",
    "day",
    "day_to_epoch",
    "instant_to_epoch",
    "request",
    "request_url",
    "utc_now",
    "with_daily",
    "with_weekly",
]
