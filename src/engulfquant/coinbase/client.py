"""
Coinbase Exchange historic candle client.

The public candles endpoint returns at most ``max_candles_per_request``
rows per call, so a date range is split into consecutive windows that are
fetched in series with a fixed delay between requests to stay within the
public rate limit.

Rows come back as ``[time, low, high, open, close, volume]``, newest first;
callers normalize them with ``normalize_exchange_candles``.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, Tuple

import httpx

from ..config import ExchangeConfig
from ..logger import get_logger
from ..models.market_data import CandleSize

logger = get_logger(__name__)

BatchCallback = Callable[[datetime, datetime], None]


def split_time_range(
    start: datetime,
    end: datetime,
    granularity: int,
    max_candles_per_request: int
) -> List[Tuple[datetime, datetime]]:
    """
    Split ``[start, end)`` into windows holding at most one request's candles.

    Each window spans ``granularity * max_candles_per_request`` seconds and
    ends one second before the next one starts. The final window is
    clipped to ``end``.
    """
    duration = timedelta(seconds=granularity * max_candles_per_request)
    ranges = []
    range_start = start
    while range_start < end:
        range_end = min(range_start + duration - timedelta(seconds=1), end)
        ranges.append((range_start, range_end))
        range_start = range_start + duration
    return ranges


class CoinbaseCandleClient:
    """Thin wrapper around the Coinbase Exchange public candles endpoint."""

    def __init__(
        self,
        config: Optional[ExchangeConfig] = None,
        session: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.config = config or ExchangeConfig()
        self.session = session or httpx.Client()
        self._sleep = sleep

    def _get_candles(self, product: str, start: datetime, end: datetime, granularity: int) -> List[list]:
        url = f"{self.config.base_url}/products/{product}/candles"
        params = {
            "granularity": granularity,
            "start": start.isoformat(),
            "end": end.isoformat(),
        }
        resp = self.session.get(url, params=params, timeout=self.config.request_timeout_seconds)
        if resp.status_code != 200:
            logger.error(f"GET {url} → {resp.status_code}: {resp.text[:300]}")
        resp.raise_for_status()
        return resp.json() or []

    def fetch_candles(
        self,
        product: str,
        start: datetime,
        end: datetime,
        candle_size: CandleSize,
        on_batch: Optional[BatchCallback] = None
    ) -> List[list]:
        """
        Fetch raw candle rows for ``product`` between ``start`` and ``end``.

        Args:
            product: Exchange product id (e.g., 'BTC-USD')
            start: Range start (timezone-aware; naive values are taken as UTC)
            end: Range end
            candle_size: Candle size to request
            on_batch: Called with each window before it is requested

        Returns:
            Concatenated raw rows of every window
        """
        candle_size = CandleSize.parse(candle_size)
        start, end = _as_utc(start), _as_utc(end)
        ranges = split_time_range(start, end, candle_size.granularity, self.config.max_candles_per_request)

        logger.info(f"Fetching {product} {candle_size.value} candles in {len(ranges)} batches")
        rows: List[list] = []
        for range_start, range_end in ranges:
            if on_batch:
                on_batch(range_start, range_end)
            batch = self._get_candles(product, range_start, range_end, candle_size.granularity)
            rows.extend(batch)
            logger.debug(f"Fetched {len(batch)} candles for {range_start.isoformat()} - {range_end.isoformat()}")
            self._sleep(self.config.request_delay_seconds)

        return rows

    def fetch_recent_candles(
        self,
        product: str,
        candle_size: CandleSize,
        count: int,
        now: Optional[datetime] = None
    ) -> List[list]:
        """Fetch the last ``count`` candles ending at ``now``."""
        candle_size = CandleSize.parse(candle_size)
        end = _as_utc(now or datetime.now(timezone.utc))
        start = end - timedelta(seconds=candle_size.granularity * count)
        return self.fetch_candles(product, start, end, candle_size)

    def close(self) -> None:
        self.session.close()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
