import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ..errors import WalletAssistantError
from ..providers.alchemy import AlchemyProvider
from ..services.portfolio import get_pnl_series, get_portfolio, list_transactions
from ..services.prices import PriceOracle
from ..services.transfers import TransferAggregator
from ..types import PnlResponse, PortfolioResponse, TxsResponse
from .deps import get_alchemy_provider, get_oracle, require_rpc, valid_address_or_400

router = APIRouter(prefix="/wallet")
_logger = logging.getLogger(__name__)


@router.get("/{address}/portfolio")
async def portfolio_endpoint(
    address: str,
    provider: AlchemyProvider = Depends(get_alchemy_provider),
    oracle: PriceOracle = Depends(get_oracle),
) -> PortfolioResponse:
    """ETH and ERC-20 balances priced in USD"""

    wallet = valid_address_or_400(address)
    require_rpc(provider)
    try:
        return await get_portfolio(wallet, provider, oracle)
    except (WalletAssistantError, ValueError) as exc:
        _logger.warning("Portfolio lookup failed for %s: %s", wallet, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/{address}/pnl")
async def pnl_endpoint(
    address: str,
    range_days: int = Query(30, alias="rangeDays", description="Days of history to return"),
    provider: AlchemyProvider = Depends(get_alchemy_provider),
) -> PnlResponse:
    wallet = valid_address_or_400(address)
    require_rpc(provider)
    try:
        return await get_pnl_series(wallet, provider, range_days)
    except (WalletAssistantError, ValueError) as exc:
        _logger.warning("PnL lookup failed for %s: %s", wallet, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/{address}/txs")
async def txs_endpoint(
    address: str,
    max_count: int = Query(50, alias="maxCount", description="Transfers to return (10-500)"),
    provider: AlchemyProvider = Depends(get_alchemy_provider),
) -> TxsResponse:
    wallet = valid_address_or_400(address)
    require_rpc(provider)
    try:
        txs = await list_transactions(wallet, TransferAggregator(provider), provider, max_count)
    except (WalletAssistantError, ValueError) as exc:
        _logger.warning("Transaction list failed for %s: %s", wallet, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return TxsResponse(address=wallet, txs=txs)
