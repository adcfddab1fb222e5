"""Dashboard data: token portfolio, flat PnL series and the transaction list."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from ..errors import WalletAssistantError
from ..providers.alchemy import AlchemyProvider
from ..types import PnlPoint, PnlResponse, PortfolioAsset, PortfolioResponse
from .prices import PriceOracle
from .transfers import TransferAggregator
from .units import format_eth, integer_to_decimal, to_integer, wei_to_eth

logger = logging.getLogger(__name__)

MAX_PORTFOLIO_TOKENS = 15
DEFAULT_PNL_DAYS = 30
MAX_PNL_DAYS = 365
MIN_TXS = 10
MAX_TXS = 500
VALUE_LOOKUP_CONCURRENCY = 6

PNL_NOTE = "ETH-only history reconstructed."


async def _token_asset(
    provider: AlchemyProvider,
    oracle: PriceOracle,
    contract: str,
    raw_balance: Any,
) -> PortfolioAsset:
    try:
        metadata = await provider.get_token_metadata(contract)
        decimals = metadata.get("decimals")
        balance = integer_to_decimal(raw_balance, to_integer(decimals) if decimals is not None else 18)
        price = await oracle.get_token_usd_price(contract)
        return PortfolioAsset(
            symbol=metadata.get("symbol") or "UNK",
            name=metadata.get("name") or "Unknown",
            balance=balance,
            usd=balance * price,
            contract=contract,
        )
    except (WalletAssistantError, ValueError) as exc:
        logger.warning("Token %s could not be priced: %s", contract, exc)
        return PortfolioAsset(symbol="UNK", name="Unknown", balance=0.0, usd=0.0, contract=contract)


async def get_portfolio(address: str, provider: AlchemyProvider, oracle: PriceOracle) -> PortfolioResponse:
    """ETH plus up to 15 ERC-20 balances, each priced in USD."""

    token_balances, balance_wei = await asyncio.gather(
        provider.get_token_balances(address),
        provider.get_balance(address),
    )
    eth_balance = wei_to_eth(balance_wei)
    eth_price = await oracle.get_eth_usd_price()

    tokens = await asyncio.gather(*(
        _token_asset(provider, oracle, token["contractAddress"], token.get("tokenBalance") or "0x0")
        for token in token_balances[:MAX_PORTFOLIO_TOKENS]
    ))

    assets = [PortfolioAsset(symbol="ETH", name="Ethereum", balance=eth_balance, usd=eth_balance * eth_price)]
    assets.extend(token for token in tokens if token.balance > 0)
    total_usd = sum(asset.usd for asset in assets)

    return PortfolioResponse(address=address, total_usd=total_usd, assets=assets)


async def get_pnl_series(
    address: str,
    provider: AlchemyProvider,
    range_days: int = DEFAULT_PNL_DAYS,
    *,
    today: Optional[date] = None,
) -> PnlResponse:
    """Current ETH balance repeated once per day over the range.

    This is a placeholder for real history: no past balances are derived and
    no USD price is applied.
    """

    days = min(max(1, range_days), MAX_PNL_DAYS)
    balance = wei_to_eth(await provider.get_balance(address))
    end = today or datetime.now(timezone.utc).date()
    start = end - timedelta(days=days - 1)

    series = [
        PnlPoint(date=(start + timedelta(days=offset)).isoformat(), eth=balance, usd=None)
        for offset in range(days)
    ]
    return PnlResponse(address=address, series=series, note=PNL_NOTE, source="alchemy-reconstructed")


async def _native_value(provider: AlchemyProvider, tx_hash: str) -> Optional[str]:
    """Value of the transaction itself, for transfers that arrived without one."""
    try:
        tx = await provider.rpc("eth_getTransactionByHash", [tx_hash])
    except WalletAssistantError as exc:
        logger.debug("Value lookup failed for %s: %s", tx_hash, exc)
        return None
    value = (tx or {}).get("value") if isinstance(tx, dict) else None
    if not value:
        return None
    return format_eth(wei_to_eth(value))


async def list_transactions(
    address: str,
    aggregator: TransferAggregator,
    provider: AlchemyProvider,
    max_count: int = 50,
) -> list[dict[str, Any]]:
    count = min(MAX_TXS, max(MIN_TXS, max_count))
    transfers = await aggregator.get_transfers(address, count, high=MAX_TXS)
    semaphore = asyncio.Semaphore(VALUE_LOOKUP_CONCURRENCY)

    async def _row(transfer: dict) -> dict[str, Any]:
        value = transfer.get("value")
        if value is None:
            erc20 = transfer.get("erc20Token") or {}
            if erc20.get("tokenSymbol"):
                value = f"{erc20['tokenSymbol']} {erc20.get('value')}"
            elif transfer.get("hash"):
                async with semaphore:
                    value = await _native_value(provider, transfer["hash"])
        return {
            "hash": transfer.get("hash"),
            "category": transfer.get("category"),
            "from": transfer.get("from"),
            "to": transfer.get("to"),
            "value": value,
            "metadata": transfer.get("metadata"),
            "asset": transfer.get("asset"),
        }

    return list(await asyncio.gather(*(_row(t) for t in transfers)))


__all__ = [
    "MAX_PORTFOLIO_TOKENS",
    "PNL_NOTE",
    "get_portfolio",
    "get_pnl_series",
    "list_transactions",
]
