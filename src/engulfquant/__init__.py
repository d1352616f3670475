"""
engulfquant: Bullish Engulfing Probability Analysis

Detects bullish engulfing candles in cryptocurrency price history and
estimates, empirically, how likely price is to rise by a given percentage
over the following candles compared with an unconditioned candle.
"""

__version__ = "0.1.0"
__author__ = "engulfquant Team"
__description__ = "Bullish engulfing pattern probability analysis"

# Package-level imports for convenience
from .config import Config
from .logger import get_logger

__all__ = ["Config", "get_logger", "__version__"]
