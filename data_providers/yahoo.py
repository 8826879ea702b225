"""Yahoo Finance history client: transport and CSV decoding."""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from io import StringIO
from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Union

import pandas as pd
import requests

from .base import DEFAULT_BASE_URL, Clock, YahooRequest, request, request_url, utc_now
from .exceptions import EmptyResultError, PriceDecodeError, TransportError

if TYPE_CHECKING:
    from market_history.config_manager import MarketHistoryConfig

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; market-history/0.1)"
DATE_FORMAT = "%Y-%m-%d"

# CSV header name -> Price attribute
NUMERIC_COLUMNS = {
    "Open": "open",
    "High": "high",
    "Low": "low",
    "Close": "close",
    "Adj Close": "adj_close",
    "Volume": "volume",
}
REQUIRED_COLUMNS = ("Date",) + tuple(NUMERIC_COLUMNS)
FRAME_COLUMNS = ["open", "high", "low", "close", "adj_close", "volume"]

_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
_NUMBER_PATTERN = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


@dataclass(frozen=True)
class Price:
    """One sampled data point as returned by Yahoo."""

    date: date
    open: float
    high: float
    low: float
    close: float
    adj_close: float
    volume: float


def parse_date_field(value: str) -> date:
    if not _DATE_PATTERN.fullmatch(value):
        raise ValueError(f"expected {DATE_FORMAT} date, got {value!r}")
    return datetime.strptime(value, DATE_FORMAT).date()


def parse_number_field(value: str) -> float:
    """Parse a plain decimal; rejects nan, inf, padding and underscores."""
    if not _NUMBER_PATTERN.fullmatch(value):
        raise ValueError(f"expected a number, got {value!r}")
    return float(value)


def _parse_row(row: Mapping[str, Optional[str]], line: int) -> Price:
    raw_date = row.get("Date")
    if raw_date is None:
        raise PriceDecodeError("missing value", line=line, column="Date")
    try:
        parsed_date = parse_date_field(raw_date)
    except ValueError as exc:
        raise PriceDecodeError(str(exc), line=line, column="Date") from exc

    values: dict[str, float] = {}
    for column, attribute in NUMERIC_COLUMNS.items():
        raw = row.get(column)
        if raw is None:
            raise PriceDecodeError("missing value", line=line, column=column)
        try:
            values[attribute] = parse_number_field(raw)
        except ValueError as exc:
            raise PriceDecodeError(str(exc), line=line, column=column) from exc

    return Price(date=parsed_date, **values)


def decode_prices(payload: Union[bytes, str]) -> list[Price]:
    """Decode a Yahoo history CSV body into prices.

    Columns are looked up by header name. The first bad row aborts the whole
    decode; rows are returned in upstream order.
    """

    if isinstance(payload, bytes):
        try:
            text = payload.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise PriceDecodeError(f"response body is not valid UTF-8: {exc}") from exc
    else:
        text = payload.lstrip("\ufeff")

    reader = csv.DictReader(StringIO(text))
    try:
        fieldnames = reader.fieldnames
        if not fieldnames:
            raise PriceDecodeError("response body is empty")

        missing = [column for column in REQUIRED_COLUMNS if column not in fieldnames]
        if missing:
            raise PriceDecodeError(f"missing expected columns: {', '.join(missing)}", line=1)

        return [_parse_row(row, reader.line_num) for row in reader]
    except csv.Error as exc:
        raise PriceDecodeError(f"malformed CSV: {exc}", line=reader.line_num) from exc


def prices_to_frame(prices: Iterable[Price]) -> pd.DataFrame:
    """Return *prices* as a frame indexed by ``date``."""

    records = list(prices)
    if not records:
        frame = pd.DataFrame(columns=FRAME_COLUMNS, dtype=float)
        frame.index = pd.DatetimeIndex([], name="date")
        return frame

    index = pd.DatetimeIndex([pd.Timestamp(price.date) for price in records], name="date")
    data = {column: [getattr(price, column) for price in records] for column in FRAME_COLUMNS}
    return pd.DataFrame(data, index=index, columns=FRAME_COLUMNS)


class YahooHistoryClient:
    """Thin wrapper around the Yahoo Finance CSV download endpoint."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Clock = utc_now,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self.clock = clock

    @classmethod
    def from_config(
        cls,
        config: "MarketHistoryConfig",
        session: Optional[requests.Session] = None,
        clock: Clock = utc_now,
    ) -> "YahooHistoryClient":
        return cls(
            session=session,
            base_url=config.http.base_url,
            timeout=config.http.timeout,
            user_agent=config.http.user_agent,
            clock=clock,
        )

    # ------------------------------------------------------------------
    def url_for(self, req: YahooRequest) -> str:
        return request_url(req, clock=self.clock, base_url=self.base_url)

    def fetch(self, req: YahooRequest) -> list[Price]:
        """Download and decode prices for *req*."""

        url = self.url_for(req)
        body = self._get(url)
        try:
            prices = decode_prices(body)
        except PriceDecodeError as exc:
            LOGGER.warning("Could not decode Yahoo response for %s: %s", req.ticker.symbol, exc)
            raise
        LOGGER.debug("Decoded %s rows for %s", len(prices), req.ticker.symbol)
        return prices

    def fetch_latest(self, symbol: str) -> Price:
        """Return the most recent price for *symbol*."""

        prices = self.fetch(request(symbol))
        if not prices:
            LOGGER.warning("Yahoo returned no rows for %s", symbol)
            raise EmptyResultError(symbol)
        return prices[0]

    def fetch_frame(self, req: YahooRequest) -> pd.DataFrame:
        frame = prices_to_frame(self.fetch(req))
        frame.attrs["symbol"] = req.ticker.symbol
        frame.attrs["source"] = "yahoo"
        if req.interval is not None:
            frame.attrs["interval"] = req.interval.value
        return frame

    # ------------------------------------------------------------------
    def _get(self, url: str) -> bytes:
        LOGGER.debug("GET %s", url)
        try:
            response = self.session.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            LOGGER.warning("Yahoo request failed for %s: %s", url, exc)
            raise TransportError(url, str(exc)) from exc
        return response.content


def fetch(req: YahooRequest) -> list[Price]:
    """Fetch *req* with a default client."""

    return YahooHistoryClient().fetch(req)


def fetch_latest(symbol: str) -> Price:
    """Fetch the latest price for *symbol* with a default client."""

    return YahooHistoryClient().fetch_latest(symbol)


__all__ = [
    "DEFAULT_USER_AGENT",
    "Price",
    "YahooHistoryClient",
    "decode_prices",
    "fetch",
    "fetch_latest",
    "parse_date_field",
    "parse_number_field",
    "prices_to_frame",
]
