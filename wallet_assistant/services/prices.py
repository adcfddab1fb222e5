"""ETH/USD and ERC-20 USD pricing with in-process caching."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Protocol, Sequence

from ..cache import Clock, SingleValueCache, TTLCache
from ..config import settings
from ..errors import UpstreamError
from ..providers.coingecko import CoingeckoProvider
from ..providers.defillama import DefiLlamaProvider

logger = logging.getLogger(__name__)

SOURCE_FAILURE_DELAY_SECONDS = 0.3


class EthPriceSource(Protocol):
    name: str

    async def get_eth_price(self) -> Optional[float]: ...


class PriceOracle:
    """Owns the ETH/USD quote and the per-contract token price cache.

    ``get_eth_usd_price`` serves a cached quote while it is fresh, otherwise
    walks ``sources`` in order and caches the first positive price. When
    every source fails it returns the last known quote (however old) or 0.0.
    """

    def __init__(
        self,
        sources: Optional[Sequence[EthPriceSource]] = None,
        token_source: Optional[CoingeckoProvider] = None,
        *,
        ttl_seconds: Optional[float] = None,
        token_ttl_seconds: Optional[float] = None,
        clock: Clock = time.monotonic,
        failure_delay: float = SOURCE_FAILURE_DELAY_SECONDS,
    ):
        coingecko = token_source or CoingeckoProvider()
        self.sources = list(sources) if sources is not None else [coingecko, DefiLlamaProvider()]
        self.token_source = coingecko
        self.failure_delay = failure_delay
        self.eth_cache: SingleValueCache[float] = SingleValueCache(
            ttl_seconds if ttl_seconds is not None else settings.price_cache_ttl_seconds,
            clock=clock,
        )
        self.token_cache = TTLCache(
            default_ttl=token_ttl_seconds if token_ttl_seconds is not None else settings.token_price_cache_ttl_seconds,
            clock=clock,
        )

    async def get_eth_usd_price(self) -> float:
        cached = self.eth_cache.fresh()
        if cached is not None:
            return cached

        async with self.eth_cache.lock:
            # a concurrent caller may have refreshed while we waited
            cached = self.eth_cache.fresh()
            if cached is not None:
                return cached

            for source in self.sources:
                try:
                    price = await source.get_eth_price()
                except (UpstreamError, ValueError) as exc:
                    logger.warning("ETH price source %s failed: %s", source.name, exc)
                    await asyncio.sleep(self.failure_delay)
                    continue
                if price:
                    self.eth_cache.set(price)
                    return price
                logger.info("ETH price source %s returned no usable price", source.name)

            last = self.eth_cache.last()
            if last:
                logger.warning("All ETH price sources failed; serving stale quote")
                return last
            logger.error("All ETH price sources failed and no quote is cached")
            return 0.0

    async def get_token_usd_price(self, contract_address: str) -> float:
        key = contract_address.lower()
        cached = await self.token_cache.get(key)
        if cached is not None:
            return cached

        try:
            price = await self.token_source.get_token_price(key)
        except (UpstreamError, ValueError) as exc:
            logger.warning("Token price lookup failed for %s: %s", key, exc)
            price = 0.0
        await self.token_cache.set(key, price)
        return price


_price_oracle: Optional[PriceOracle] = None


def get_price_oracle() -> PriceOracle:
    """Process-wide oracle so every request shares one quote cache."""
    global _price_oracle
    if _price_oracle is None:
        _price_oracle = PriceOracle()
    return _price_oracle


__all__ = ["PriceOracle", "EthPriceSource", "get_price_oracle"]
