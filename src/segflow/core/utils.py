"""Utility functions and helpers."""

import logging
import math


# Logging setup
def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with standardized configuration.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger


# Ratio helpers
def safe_ratio(numerator: float, denominator: float) -> float | None:
    """
    Divide, returning None when the denominator is zero.

    Args:
        numerator: Ratio numerator
        denominator: Ratio denominator

    Returns:
        numerator / denominator, or None if undefined

    Examples:
        >>> safe_ratio(600, 1000)
        0.6
        >>> safe_ratio(50, 0) is None
        True
    """
    if denominator == 0:
        return None
    return numerator / denominator


def is_out_of_range(value: float | None, low: float, high: float) -> bool:
    """Check whether a defined value lies outside [low, high]."""
    if value is None:
        return False
    if math.isnan(value):
        return True
    return value < low or value > high


# FIPS helpers
def normalize_fips(code: str | int, width: int) -> str:
    """
    Zero-pad a FIPS code to its canonical width.

    Args:
        code: FIPS code as string or integer (e.g., 5 or "005")
        width: Canonical width (2 for states, 3 for counties, 6 for tracts)

    Returns:
        Zero-padded code

    Raises:
        ValueError: If the code is not numeric or longer than width

    Examples:
        >>> normalize_fips(5, 3)
        '005'
        >>> normalize_fips("36", 2)
        '36'
    """
    text = str(code).strip()
    if not text.isdigit():
        raise ValueError(f"FIPS code must be numeric: {code!r}")
    if len(text) > width:
        raise ValueError(f"FIPS code {code!r} is longer than {width} digits")
    return text.zfill(width)
