from typing import Dict, Optional

import httpx

from ..config import settings
from ..services.http import fetch_with_retry, fetch_with_timeout
from ..services.units import positive_float
from .base import Provider


class CoingeckoProvider(Provider):
    """Coingecko API provider for token prices"""

    name = "coingecko"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(transport)
        self.api_key = settings.coingecko_api_key
        self.base_url = (base_url or settings.coingecko_base_url).rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else settings.price_timeout_seconds

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["X-CG-Demo-API-Key"] = self.api_key
        return headers

    async def ready(self) -> bool:
        return settings.enable_coingecko  # API key is optional for basic tier

    async def get_eth_price(self) -> Optional[float]:
        """ETH/USD, or None when the response is not usable"""

        response = await fetch_with_timeout(
            "GET",
            f"{self.base_url}/simple/price",
            params={"ids": "ethereum", "vs_currencies": "usd"},
            headers=self._build_headers(),
            timeout=self.timeout_s,
            transport=self.transport,
            source="coingecko",
        )
        if not response.is_success:
            return None
        data = response.json()
        quote = data.get("ethereum") if isinstance(data, dict) else None
        if not isinstance(quote, dict):
            return None
        return positive_float(quote.get("usd"))

    async def get_token_price(self, contract_address: str) -> float:
        """USD price for an ERC-20 contract on Ethereum; 0.0 when unknown"""

        address = contract_address.lower()
        response = await fetch_with_retry(
            "GET",
            f"{self.base_url}/simple/token_price/ethereum",
            params={"contract_addresses": address, "vs_currencies": "usd"},
            headers=self._build_headers(),
            timeout=self.timeout_s,
            retries=settings.http_retries,
            transport=self.transport,
            source="coingecko token_price",
        )
        if not response.is_success:
            return 0.0
        data = response.json()
        if not isinstance(data, dict):
            return 0.0
        for key, price_data in data.items():
            if key.lower() == address and isinstance(price_data, dict):
                return positive_float(price_data.get("usd")) or 0.0
        return 0.0
