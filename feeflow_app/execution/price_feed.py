"""
Price sources and the ordered fallback feed.

Sources are tried in order: liquidity-weighted aggregator, bonding-curve
reserve ratio, spot oracle. The first usable quote wins and is cached for
``cache_ttl`` seconds. When every source fails the feed returns None.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

import aiohttp
import structlog

from ..config.defaults import PriceFeedParams
from ..data.models import PriceQuote
from ..errors import TransientNetworkError
from ..utils.cache import TTLCache

logger = structlog.get_logger(__name__)


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class PriceSource(ABC):
    """A single upstream price source."""

    name: str = "source"

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    @abstractmethod
    async def fetch(self, feed: "PriceFeed", mint: str) -> Optional[PriceQuote]:
        """Return a quote, or None when the source has no usable price."""


class LiquidityAggregatorSource(PriceSource):
    """DEX aggregator; the deepest pair by USD liquidity is used."""

    name = "aggregator"

    async def fetch(self, feed: "PriceFeed", mint: str) -> Optional[PriceQuote]:
        data = await feed.get_json(f"{self.base_url}/{mint}")
        pairs = (data or {}).get("pairs") or []
        if not pairs:
            return None

        main_pair = max(pairs, key=lambda p: _to_float((p.get("liquidity") or {}).get("usd")))
        price = _to_float(main_pair.get("priceUsd"))
        if price <= 0:
            return None

        txns = main_pair.get("txns") or {}
        buys = sum(int((txns.get(w) or {}).get("buys", 0)) for w in ("h1", "h6"))
        sells = sum(int((txns.get(w) or {}).get("sells", 0)) for w in ("h1", "h6"))
        buy_pressure = buys / (buys + sells) * 100 if buys + sells > 0 else None

        return PriceQuote(
            price=price,
            source=self.name,
            volume=_to_float((main_pair.get("volume") or {}).get("h24")),
            price_change=_to_float((main_pair.get("priceChange") or {}).get("h1")),
            buy_pressure=buy_pressure,
        )


class BondingCurveSource(PriceSource):
    """Pre-migration bonding curve; price is the virtual reserve ratio."""

    name = "bonding_curve"

    def __init__(self, base_url: str, quote_decimals: int = 9, token_decimals: int = 6):
        super().__init__(base_url)
        self.quote_decimals = quote_decimals
        self.token_decimals = token_decimals

    async def fetch(self, feed: "PriceFeed", mint: str) -> Optional[PriceQuote]:
        data = await feed.get_json(f"{self.base_url}/coins/{mint}")
        if not data:
            return None

        quote_reserves = _to_float(data.get("virtual_sol_reserves"))
        token_reserves = _to_float(data.get("virtual_token_reserves"))
        if quote_reserves <= 0 or token_reserves <= 0:
            return None

        price = (quote_reserves / 10 ** self.quote_decimals) / (token_reserves / 10 ** self.token_decimals)
        return PriceQuote(
            price=price,
            source=self.name,
            volume=_to_float(data.get("volume_24h")),
        )


class SpotOracleSource(PriceSource):
    """Last-resort spot price oracle."""

    name = "spot_oracle"

    async def fetch(self, feed: "PriceFeed", mint: str) -> Optional[PriceQuote]:
        data = await feed.get_json(self.base_url, params={"ids": mint})
        entry = ((data or {}).get("data") or {}).get(mint) or {}
        price = _to_float(entry.get("price"))
        if price <= 0:
            return None
        return PriceQuote(price=price, source=self.name)


class PriceFeed:
    """Ordered price source fallback chain with a TTL cache."""

    def __init__(
        self,
        params: Optional[PriceFeedParams] = None,
        sources: Optional[Sequence[PriceSource]] = None,
        session: Optional[aiohttp.ClientSession] = None,
        cache: Optional[TTLCache] = None,
    ) -> None:
        self.params = params or PriceFeedParams()
        self.sources = list(sources) if sources is not None else self.default_sources(self.params)
        self.cache = cache or TTLCache(self.params.cache_ttl)
        self._session = session
        self._owns_session = session is None

    @staticmethod
    def default_sources(params: PriceFeedParams) -> list[PriceSource]:
        return [
            LiquidityAggregatorSource(params.aggregator_url),
            BondingCurveSource(params.bonding_curve_url),
            SpotOracleSource(params.spot_oracle_url),
        ]

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.params.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    async def get_json(self, url: str, params: Optional[dict[str, str]] = None) -> Any:
        """GET ``url`` and decode the JSON body."""
        try:
            async with self._get_session().get(url, params=params) as response:
                if response.status != 200:
                    raise TransientNetworkError(
                        f"Price source returned {response.status}",
                        operation="price", status_code=response.status,
                    )
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise TransientNetworkError(f"Network error: {e}", operation="price") from e
        except asyncio.TimeoutError as e:
            raise TransientNetworkError("Request timeout", operation="price") from e

    async def get_price(self, mint: str, force_refresh: bool = False) -> Optional[PriceQuote]:
        """
        Current quote for ``mint``.

        Args:
            mint: Token mint address
            force_refresh: Bypass the cache

        Returns:
            The cached or first successful quote, None if every source failed
        """
        if not force_refresh:
            cached = self.cache.get(mint)
            if cached is not None:
                return cached

        for source in self.sources:
            try:
                quote = await source.fetch(self, mint)
            except (TransientNetworkError, ValueError, TypeError, AttributeError) as e:
                logger.debug("Price source failed", source=source.name, mint=mint, error=str(e))
                continue

            if quote is None:
                logger.debug("Price source had no price", source=source.name, mint=mint)
                continue

            self.cache.set(mint, quote)
            logger.debug("Price updated", source=source.name, mint=mint, price=quote.price)
            return quote

        logger.warning("All price sources failed", mint=mint,
                       sources=[s.name for s in self.sources])
        return None
