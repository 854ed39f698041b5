"""
Shared utilities for the OPPR scoring engine.

This module provides common functions used across multiple modules
to avoid code duplication.
"""

import logging
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


# --- Logging Setup ---
def setup_logging(name: str | None = None, level: int = logging.INFO) -> logging.Logger:
    """
    Configure and return a logger with consistent formatting.

    Args:
        name: Logger name (usually __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


# --- Bounded Selection ---
def top_n(
    items: Iterable[T],
    n: int,
    key: Callable[[T], float],
    tie_break: Callable[[T], object],
    descending: bool = True,
) -> list[T]:
    """
    Sort items by a numeric key and keep the first n.

    Every bounded selection in the engine goes through here so that the
    ordering and tie-break policy is the same everywhere: primary key in the
    requested direction, then ``tie_break`` ascending.

    Args:
        items: Candidates to select from
        n: Maximum number of items to keep (0 or less keeps nothing)
        key: Primary sort key
        tie_break: Secondary key, always ascending
        descending: Sort the primary key highest-first (default) or lowest-first

    Returns:
        New list with at most n items
    """
    if n <= 0:
        return []

    sign = -1 if descending else 1
    ordered = sorted(items, key=lambda item: (sign * key(item), tie_break(item)))
    return ordered[:n]


# --- Numeric Guards ---
def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(value, high))


__all__ = [
    # Logging
    'setup_logging',
    # Selection
    'top_n',
    # Numeric
    'clamp',
]
