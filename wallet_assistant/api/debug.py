from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import settings
from ..providers.alchemy import AlchemyProvider
from ..services.receipts import get_tx_and_receipt
from .deps import MISSING_RPC_MESSAGE, get_alchemy_provider

router = APIRouter()


@router.get("/debug")
async def debug_endpoint(
    hash: Optional[str] = Query(None, description="Transaction hash to inspect"),
    provider: AlchemyProvider = Depends(get_alchemy_provider),
):
    """Raw transaction and receipt exchanges for a hash (developer utility)."""

    if not hash:
        raise HTTPException(status_code=400, detail="Missing ?hash= parameter")
    if not provider.base_url:
        raise HTTPException(status_code=400, detail=MISSING_RPC_MESSAGE)

    pair = await get_tx_and_receipt(provider, hash.strip())
    return {
        "hash": pair.hash,
        "network": settings.alchemy_network,
        "tx": pair.tx.to_dict(),
        "receipt": pair.receipt.to_dict(),
    }
