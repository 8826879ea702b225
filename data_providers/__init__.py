from .base import (
    After,
    Before,
    Interval,
    Range,
    Ticker,
    YahooRequest,
    after,
    before,
    between,
    day,
    request,
    request_url,
    with_daily,
    with_weekly,
)
from .exceptions import EmptyResultError, PriceDecodeError, TransportError, YahooApiError
from .yahoo import Price, YahooHistoryClient, decode_prices, fetch, fetch_latest, prices_to_frame

__all__ = [
    'After',
    'Before',
    'EmptyResultError',
    'Interval',
    'Price',
    'PriceDecodeError',
    'Range',
    'Ticker',
    'TransportError',
    'YahooApiError',
    'YahooHistoryClient',
    'YahooRequest',
    'after',
    'before',
    'between',
    'day',
    'decode_prices',
    'fetch',
    'fetch_latest',
    'prices_to_frame',
    'request',
    'request_url',
    'with_daily',
    'with_weekly',
]
