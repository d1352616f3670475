"""
Real-time candle collection.

Polls the exchange for the most recent candles on a fixed interval and
pushes each completed batch to registered listeners. Listeners receive the
raw exchange rows; normalization is theirs to do.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx

from ..logger import get_data_logger, get_logger
from ..models.market_data import CandleSize
from .client import CoinbaseCandleClient

logger = get_logger(__name__)
data_logger = get_data_logger()

CandleBatchListener = Callable[[List[list]], None]


@dataclass
class CollectorStats:
    """Counters for the polling loop."""
    batches_collected: int = 0
    candles_collected: int = 0
    fetch_errors: int = 0
    listener_errors: int = 0
    last_collect_time: Optional[datetime] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'batches_collected': self.batches_collected,
            'candles_collected': self.candles_collected,
            'fetch_errors': self.fetch_errors,
            'listener_errors': self.listener_errors,
            'last_collect_time': self.last_collect_time.isoformat() if self.last_collect_time else None,
            'uptime_seconds': (datetime.now(timezone.utc) - self.started_at).total_seconds(),
        }


class RealTimeCandleCollector:
    """Periodically fetches the latest candles of one product and candle size."""

    def __init__(
        self,
        client: CoinbaseCandleClient,
        product: str,
        candle_size: CandleSize,
        poll_interval_seconds: float = 900.0,
        history_candles: int = 300
    ):
        self.client = client
        self.product = product
        self.candle_size = CandleSize.parse(candle_size)
        self.poll_interval_seconds = poll_interval_seconds
        self.history_candles = history_candles

        self.running = False
        self.stats = CollectorStats()
        self._listeners: List[CandleBatchListener] = []
        self._stop_event: Optional[asyncio.Event] = None

    def add_listener(self, listener: CandleBatchListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: CandleBatchListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def collect_once(self) -> List[list]:
        """Fetch one batch and deliver it to every listener."""
        rows = await asyncio.to_thread(
            self.client.fetch_recent_candles,
            self.product,
            self.candle_size,
            self.history_candles
        )
        self.stats.batches_collected += 1
        self.stats.candles_collected += len(rows)
        self.stats.last_collect_time = datetime.now(timezone.utc)
        data_logger.info(f"Collected {len(rows)} {self.product} {self.candle_size.value} candles")

        for listener in list(self._listeners):
            try:
                listener(rows)
            except Exception:
                self.stats.listener_errors += 1
                logger.exception(f"Candle batch listener {listener!r} failed")

        return rows

    async def start(self) -> None:
        """Poll until stop() is called."""
        self.running = True
        self._stop_event = asyncio.Event()
        logger.info(
            f"Collector started for {self.product} {self.candle_size.value} "
            f"(every {self.poll_interval_seconds:.0f}s)"
        )

        while self.running:
            try:
                await self.collect_once()
            except (httpx.HTTPError, json.JSONDecodeError) as e:
                self.stats.fetch_errors += 1
                logger.error(f"Candle fetch failed, retrying next interval: {e}")

            if not self.running:
                break
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval_seconds)
            except asyncio.TimeoutError:
                pass

        logger.info(f"Collector stopped for {self.product} {self.candle_size.value}")

    def stop(self) -> None:
        self.running = False
        if self._stop_event is not None:
            self._stop_event.set()
