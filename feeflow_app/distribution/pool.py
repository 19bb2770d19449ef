"""
Liquidity pool state and constant-product deposit math.

A token either still trades on its bonding curve (``PreBond``) or has
migrated to an open pool (``Bonded``, carrying a reserve snapshot). Deposits
into a bonded pool are proportional to the current reserves.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

import structlog

from ..utils.cache import TTLCache

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PoolSnapshot:
    """Point-in-time read of an AMM pool's reserves (smallest units)."""
    pool_address: str
    base_reserve: int       # Token side
    quote_reserve: int      # Quote (SOL) side
    lp_supply: int


@dataclass(frozen=True)
class PreBond:
    """Market still on the bonding curve; no pool to deposit into."""


@dataclass(frozen=True)
class Bonded:
    """Market migrated to an open pool."""
    snapshot: PoolSnapshot


PoolState = Union[PreBond, Bonded]


@dataclass(frozen=True)
class DepositQuote:
    """Two-sided deposit amounts with slippage ceilings."""
    base: int
    quote: int
    lp_tokens: int
    max_base: int
    max_quote: int


def _check_reserves(snapshot: PoolSnapshot) -> None:
    if snapshot.base_reserve <= 0 or snapshot.quote_reserve <= 0 or snapshot.lp_supply <= 0:
        raise ValueError(f"Pool {snapshot.pool_address} has empty reserves")


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def _with_slippage(amount: int, slippage: float) -> int:
    return int(amount * (1 + slippage))


def quote_deposit_from_quote(snapshot: PoolSnapshot, quote_amount: int,
                             slippage: float = 0.05) -> DepositQuote:
    """
    Deposit sized by the quote side.

    lp = quote * lp_supply / quote_reserve (floored);
    base = quote * base_reserve / quote_reserve (rounded up).
    """
    _check_reserves(snapshot)
    if quote_amount < 0:
        raise ValueError("Quote amount must be non-negative")

    lp_tokens = quote_amount * snapshot.lp_supply // snapshot.quote_reserve
    base = _ceil_div(quote_amount * snapshot.base_reserve, snapshot.quote_reserve)

    return DepositQuote(
        base=base,
        quote=quote_amount,
        lp_tokens=lp_tokens,
        max_base=_with_slippage(base, slippage),
        max_quote=quote_amount,
    )


def quote_deposit_from_base(snapshot: PoolSnapshot, base_amount: int,
                            slippage: float = 0.05) -> DepositQuote:
    """
    Deposit sized by the token side.

    lp = base * lp_supply / base_reserve (floored);
    quote = base * quote_reserve / base_reserve (rounded up).
    """
    _check_reserves(snapshot)
    if base_amount < 0:
        raise ValueError("Base amount must be non-negative")

    lp_tokens = base_amount * snapshot.lp_supply // snapshot.base_reserve
    quote = _ceil_div(base_amount * snapshot.quote_reserve, snapshot.base_reserve)

    return DepositQuote(
        base=base_amount,
        quote=quote,
        lp_tokens=lp_tokens,
        max_base=base_amount,
        max_quote=_with_slippage(quote, slippage),
    )


class PoolClient(ABC):
    """Access to the AMM the token migrates to."""

    @abstractmethod
    async def get_pool_state(self, mint: str) -> PoolState:
        """Current state of ``mint``'s market."""

    @abstractmethod
    async def deposit(self, snapshot: PoolSnapshot, base_amount: int,
                      max_quote_amount: int, lp_amount: int) -> str:
        """Deposit both sides into the pool; returns the transaction signature."""


class PoolStateLookup:
    """Pool state reads through an explicit TTL cache."""

    def __init__(self, client: PoolClient, cache: Optional[TTLCache] = None,
                 ttl_seconds: float = 30.0):
        self.client = client
        self.cache = cache or TTLCache(ttl_seconds)

    async def get(self, mint: str, force_refresh: bool = False) -> PoolState:
        if not force_refresh:
            cached = self.cache.get(mint)
            if cached is not None:
                return cached

        state = await self.client.get_pool_state(mint)
        self.cache.set(mint, state)

        if isinstance(state, Bonded):
            logger.debug("Pool state read", mint=mint, pool=state.snapshot.pool_address,
                         base_reserve=state.snapshot.base_reserve,
                         quote_reserve=state.snapshot.quote_reserve)
        else:
            logger.debug("Pool state read", mint=mint, bonded=False)
        return state
