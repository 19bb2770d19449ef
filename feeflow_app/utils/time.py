"""
Time helpers.

Wall-clock time is UTC everywhere. Interval arithmetic (rate limiting,
cache expiry) uses the monotonic clock so that wall-clock adjustments
cannot shorten or stretch a wait.
"""

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def monotonic() -> float:
    """Monotonic clock in seconds for interval measurements."""
    return time.monotonic()


def format_units(amount: int, decimals: int = 9) -> str:
    """
    Format an integer amount of smallest units for logs.

    Args:
        amount: Amount in smallest units (e.g. lamports)
        decimals: Number of decimals of the unit

    Returns:
        Human readable decimal string, e.g. ``0.001000``
    """
    return f"{amount / 10 ** decimals:.6f}"
