"""
Execution module.

Trade API client, price feed, settlement client interface and the
retry, rate limiting and polling primitives they share.
"""

from .polling import poll_until
from .price_feed import PriceFeed
from .rate_limit import RateLimiter
from .retry import RetryPolicy, is_transient, retry_async
from .settlement import SettlementClient
from .trade_client import TradeClient, TradeResult

__all__ = [
    "poll_until",
    "PriceFeed",
    "RateLimiter",
    "RetryPolicy",
    "is_transient",
    "retry_async",
    "SettlementClient",
    "TradeClient",
    "TradeResult",
]
