"""
Training and inference drivers.

Both drivers call the same classifier; the trainer over a whole price
history, the inferrer over the latest candle of each live batch.
"""

from .inferrer import AlertListener, BullishEngulfingInferrer
from .trainer import BullishEngulfingTrainer

__all__ = ['AlertListener', 'BullishEngulfingInferrer', 'BullishEngulfingTrainer']
