from typing import Optional

import httpx

from ..config import settings
from ..services.http import fetch_with_timeout
from ..services.units import positive_float
from .base import Provider

ETH_COIN_KEY = "coingecko:ethereum"


class DefiLlamaProvider(Provider):
    """DefiLlama coins API, used as the secondary ETH/USD source"""

    name = "defillama"

    def __init__(
        self,
        price_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(transport)
        self.price_url = price_url or settings.defillama_price_url
        self.timeout_s = timeout_s if timeout_s is not None else settings.price_timeout_seconds

    async def ready(self) -> bool:
        return bool(self.price_url)

    async def get_eth_price(self) -> Optional[float]:
        response = await fetch_with_timeout(
            "GET",
            self.price_url,
            timeout=self.timeout_s,
            transport=self.transport,
            source="defillama",
        )
        if not response.is_success:
            return None
        data = response.json()
        coins = data.get("coins") if isinstance(data, dict) else None
        coin = coins.get(ETH_COIN_KEY) if isinstance(coins, dict) else None
        if not isinstance(coin, dict):
            return None
        return positive_float(coin.get("price"))
