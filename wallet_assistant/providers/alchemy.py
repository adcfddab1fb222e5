import itertools
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..errors import ConfigurationError, UpstreamError
from ..services.http import fetch_with_retry
from ..services.units import to_integer
from .base import Provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RpcResult:
    """Raw JSON-RPC exchange, kept whole so callers can tell 404s from empty results."""

    ok: bool
    status: int
    body: Any

    @property
    def result(self) -> Optional[Any]:
        if isinstance(self.body, dict):
            return self.body.get("result")
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "status": self.status, "body": self.body}


class AlchemyProvider(Provider):
    """Alchemy JSON-RPC provider for Ethereum data"""

    name = "alchemy"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(transport)
        self.base_url = base_url if base_url is not None else settings.alchemy_base
        self.timeout_s = timeout_s if timeout_s is not None else settings.rpc_timeout_seconds
        self.retries = retries if retries is not None else settings.http_retries
        self._ids = itertools.count(1)

    async def ready(self) -> bool:
        return bool(self.base_url) and settings.enable_alchemy

    def _payload(self, method: str, params: List[Any]) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

    async def _post(self, method: str, params: List[Any]) -> httpx.Response:
        if not self.base_url:
            raise ConfigurationError("Missing ALCHEMY_API_KEY or ALCHEMY_BASE_URL")
        return await fetch_with_retry(
            "POST",
            self.base_url,
            json=self._payload(method, params),
            headers={"Content-Type": "application/json"},
            timeout=self.timeout_s,
            retries=self.retries,
            transport=self.transport,
            source=f"alchemy {method}",
        )

    async def rpc(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Call ``method`` and return its ``result`` member."""

        response = await self._post(method, params or [])
        if not response.is_success:
            raise UpstreamError(f"alchemy {method}", response.text, status=response.status_code)
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(f"alchemy {method}", "response was not JSON", status=response.status_code) from exc

        if isinstance(data, dict) and data.get("error"):
            raise UpstreamError(f"alchemy {method}", data["error"], status=response.status_code)
        return data.get("result") if isinstance(data, dict) else None

    async def rpc_raw(self, method: str, params: Optional[List[Any]] = None) -> RpcResult:
        """Call ``method`` without interpreting the HTTP status."""

        response = await self._post(method, params or [])
        try:
            body: Any = response.json()
        except (ValueError, json.JSONDecodeError):
            body = response.text
        return RpcResult(ok=response.is_success, status=response.status_code, body=body)

    async def get_balance(self, address: str) -> int:
        """ETH balance in wei"""
        result = await self.rpc("eth_getBalance", [address, "latest"])
        return to_integer(result)

    async def get_asset_transfers(self, transfer_filter: Dict[str, Any]) -> Any:
        return await self.rpc("alchemy_getAssetTransfers", [transfer_filter])

    async def get_transaction(self, tx_hash: str) -> RpcResult:
        return await self.rpc_raw("eth_getTransactionByHash", [tx_hash])

    async def get_receipt(self, tx_hash: str) -> RpcResult:
        return await self.rpc_raw("eth_getTransactionReceipt", [tx_hash])

    async def get_token_balances(self, address: str) -> List[Dict[str, Any]]:
        """ERC-20 balances as ``[{contractAddress, tokenBalance}]``"""
        result = await self.rpc("alchemy_getTokenBalances", [address, "erc20"])
        if not isinstance(result, dict):
            return []
        balances = result.get("tokenBalances") or []
        return [b for b in balances if isinstance(b, dict) and b.get("contractAddress")]

    async def get_token_metadata(self, contract_address: str) -> Dict[str, Any]:
        result = await self.rpc("alchemy_getTokenMetadata", [contract_address])
        return result if isinstance(result, dict) else {}
