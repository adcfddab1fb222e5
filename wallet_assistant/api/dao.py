import logging

from fastapi import APIRouter, Depends, HTTPException

from ..errors import WalletAssistantError
from ..providers.snapshot import SnapshotProvider
from ..services.dao import get_open_proposals
from ..types import DaoVotesResponse
from .deps import get_snapshot_provider, valid_address_or_400

router = APIRouter(prefix="/dao")
_logger = logging.getLogger(__name__)


@router.get("/{address}/votes")
async def dao_votes_endpoint(
    address: str,
    provider: SnapshotProvider = Depends(get_snapshot_provider),
) -> DaoVotesResponse:
    """Open Snapshot proposals from the tracked DAO spaces."""

    wallet = valid_address_or_400(address)
    try:
        proposals = await get_open_proposals(wallet, provider)
    except (WalletAssistantError, ValueError) as exc:
        _logger.warning("DAO votes lookup failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return DaoVotesResponse(address=wallet, open=proposals, count=len(proposals))
