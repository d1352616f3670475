"""
Database package for engulfquant.

Provides DuckDB connection management and the training result store.
"""

from .connection import DatabaseManager
from .training_store import TRAINING_TABLE, TrainingStore

__all__ = [
    'DatabaseManager',
    'TRAINING_TABLE',
    'TrainingStore',
]
