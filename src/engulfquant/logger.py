"""
Logging infrastructure for the engulfquant analysis system.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output."""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class StructuredFormatter(logging.Formatter):
    """Structured formatter for file output."""

    def format(self, record: logging.LogRecord) -> str:
        # Prefix analysis context carried by AnalysisLoggerAdapter
        prefix = ""
        if hasattr(record, 'product'):
            prefix += f"[{record.product}]"
        if hasattr(record, 'candle_size'):
            prefix += f"[{record.candle_size}]"
        message = super().format(record)
        return f"{prefix} {message}" if prefix else message


def setup_logger(
    name: str,
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_size: str = "10MB",
    backup_count: int = 5,
    console_output: bool = True
) -> logging.Logger:
    """
    Set up a logger with file rotation and optional console output.

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        max_size: Maximum log file size before rotation
        backup_count: Number of backup files to keep
        console_output: Whether to output to console

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(ColoredFormatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=_parse_size(max_size),
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(StructuredFormatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance with default configuration.

    The level and log file fall back to LOG_LEVEL / LOG_FILE_PATH.
    """
    return setup_logger(
        name=name,
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE_PATH", "./logs/engulfquant.log"),
        console_output=True
    )


def get_analysis_logger() -> logging.Logger:
    """Get specialized logger for training and inference runs."""
    return setup_logger(
        name="engulfquant.analysis",
        level=os.getenv("LOG_LEVEL", "INFO"),
        log_file="./logs/analysis.log",
        console_output=True
    )


def get_data_logger() -> logging.Logger:
    """Get specialized logger for candle collection."""
    return setup_logger(
        name="engulfquant.data",
        level=os.getenv("LOG_LEVEL", "INFO"),
        log_file="./logs/data.log",
        console_output=False  # Polling is noisy
    )


def _parse_size(size_str: str) -> int:
    """
    Parse size string (e.g., '10MB', '1GB') to bytes.

    Unparseable values fall back to 10MB.
    """
    size_str = size_str.upper().strip()

    size_map = {
        'GB': 1024 * 1024 * 1024,
        'MB': 1024 * 1024,
        'KB': 1024,
        'B': 1,
    }

    for unit, multiplier in size_map.items():
        if size_str.endswith(unit):
            number = size_str[:-len(unit)].strip()
            try:
                return int(float(number) * multiplier)
            except ValueError:
                break

    try:
        return int(size_str)
    except ValueError:
        return 10 * 1024 * 1024


class AnalysisLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that tags records with product and candle size."""

    def process(self, msg: str, kwargs: dict) -> tuple:
        extra = dict(self.extra)
        extra.update(kwargs.get('extra', {}))
        kwargs['extra'] = extra
        return msg, kwargs


def get_analysis_adapter(
    product: Optional[str] = None,
    candle_size: Optional[str] = None
) -> AnalysisLoggerAdapter:
    """
    Get an analysis logger adapter with context.

    Args:
        product: Exchange product (e.g., 'BTC-USD')
        candle_size: Candle size label (e.g., '1-day')
    """
    extra = {}
    if product:
        extra['product'] = product
    if candle_size:
        extra['candle_size'] = candle_size

    return AnalysisLoggerAdapter(get_analysis_logger(), extra)
