"""Typed exceptions for the Yahoo history client."""

from __future__ import annotations

from typing import Optional


class YahooApiError(RuntimeError):
    """Base class for failures talking to, or decoding data from, Yahoo."""


class TransportError(YahooApiError):
    """Raised when the HTTP request itself fails."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"Request to {url} failed: {message}")


class PriceDecodeError(YahooApiError):
    """Raised when the response body is not valid price CSV."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[str] = None) -> None:
        self.line = line
        self.column = column
        location = ""
        if line is not None:
            location = f"line {line}"
            if column is not None:
                location += f", column '{column}'"
            location += ": "
        super().__init__(f"{location}{message}")


class EmptyResultError(YahooApiError):
    """Raised when a single price was requested but none came back."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"No price data returned for {symbol}")


__all__ = ["EmptyResultError", "PriceDecodeError", "TransportError", "YahooApiError"]
