"""
Persistence of bullish engulfing training results.

Each AggregateResult is stored as a JSON document keyed by its
TrainingIdentity (product, candle size, lookback, lookahead, wick ratio).
Re-training the same identity replaces the previous document.
"""

import json
from typing import List, Optional

from ..logger import get_logger
from ..models.analysis import AggregateResult, TrainingIdentity
from .connection import DatabaseManager

logger = get_logger(__name__)

TRAINING_TABLE = "bullish_engulfing_training"


class TrainingStore:
    """Upserts and looks up training results in DuckDB."""

    def __init__(self, db_manager: DatabaseManager, table_name: str = TRAINING_TABLE):
        self.db_manager = db_manager
        self.table_name = table_name

    def create_table(self) -> None:
        """Create the training table if it does not exist."""
        sql = f"""
        CREATE TABLE IF NOT EXISTS {self.table_name} (
            product TEXT NOT NULL,
            candle_size TEXT NOT NULL,
            lookback_candles INTEGER NOT NULL,
            lookahead_candles INTEGER NOT NULL,
            allowed_wick_to_body_ratio DOUBLE NOT NULL,
            bullish_engulfing_event_count INTEGER NOT NULL,
            event_count INTEGER NOT NULL,
            document TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (product, candle_size, lookback_candles, lookahead_candles, allowed_wick_to_body_ratio)
        )
        """
        self.db_manager.execute(sql)
        logger.debug(f"Created {self.table_name} table")

    def upsert(self, identity: TrainingIdentity, result: AggregateResult) -> None:
        """Insert or replace the result stored under ``identity``."""
        sql = f"""
        INSERT OR REPLACE INTO {self.table_name} (
            product, candle_size, lookback_candles, lookahead_candles,
            allowed_wick_to_body_ratio, bullish_engulfing_event_count,
            event_count, document, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
        """
        params = (
            identity.product,
            identity.candle_size,
            identity.lookback_candles,
            identity.lookahead_candles,
            identity.allowed_wick_to_body_ratio,
            result.bullish_engulfing_event_count,
            len(result.events),
            json.dumps(result.to_document()),
        )
        self.db_manager.execute(sql, params)
        logger.info(
            f"Stored training result for {identity.product} {identity.candle_size} "
            f"(lookback={identity.lookback_candles}, lookahead={identity.lookahead_candles}, "
            f"wick ratio={identity.allowed_wick_to_body_ratio})"
        )

    def find(self, identity: TrainingIdentity) -> Optional[AggregateResult]:
        """Return the result stored under ``identity``, or None."""
        sql = f"""
        SELECT document FROM {self.table_name}
        WHERE product = ? AND candle_size = ? AND lookback_candles = ?
          AND lookahead_candles = ? AND allowed_wick_to_body_ratio = ?
        """
        rows = self.db_manager.execute(sql, (
            identity.product,
            identity.candle_size,
            identity.lookback_candles,
            identity.lookahead_candles,
            identity.allowed_wick_to_body_ratio,
        ))
        if not rows:
            return None
        return AggregateResult.model_validate_json(rows[0][0])

    def list_identities(self) -> List[TrainingIdentity]:
        """All stored identities, ordered by product and candle size."""
        rows = self.db_manager.execute(f"""
        SELECT product, candle_size, lookback_candles, lookahead_candles, allowed_wick_to_body_ratio
        FROM {self.table_name}
        ORDER BY product, candle_size, lookback_candles, lookahead_candles, allowed_wick_to_body_ratio
        """)
        return [
            TrainingIdentity(
                product=product,
                candle_size=candle_size,
                lookback_candles=lookback,
                lookahead_candles=lookahead,
                allowed_wick_to_body_ratio=ratio
            )
            for product, candle_size, lookback, lookahead, ratio in rows
        ]
