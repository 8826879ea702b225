"""Quick manual smoke test against the live Yahoo endpoint."""

from __future__ import annotations

import sys
from datetime import date, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from data_providers.base import after, request, with_daily
from data_providers.exceptions import YahooApiError
from data_providers.yahoo import YahooHistoryClient


def run() -> None:
    client = YahooHistoryClient()
    start = date.today() - timedelta(days=30)

    for symbol in ["AAPL", "MSFT"]:
        try:
            frame = client.fetch_frame(after(start, with_daily(request(symbol))))
        except YahooApiError as exc:
            print(f"{symbol}: failed ({exc})")
            continue
        print(
            f"{symbol}: {len(frame)} rows, "
            f"first={frame.index.min().date() if not frame.empty else 'NA'}, "
            f"last={frame.index.max().date() if not frame.empty else 'NA'}"
        )


if __name__ == "__main__":
    run()
