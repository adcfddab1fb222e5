"""FastAPI dependencies for upstream collaborators.

Routes ask for providers through these functions so tests can swap them via
``app.dependency_overrides``.
"""

from fastapi import HTTPException

from ..config import settings
from ..core.chat import ChatServices
from ..providers.alchemy import AlchemyProvider
from ..providers.snapshot import SnapshotProvider
from ..services.address import is_eth_address, normalize_address
from ..services.prices import PriceOracle, get_price_oracle
from ..services.transfers import TransferAggregator

MISSING_RPC_MESSAGE = "Missing ALCHEMY_API_KEY or ALCHEMY_BASE_URL"


def get_alchemy_provider() -> AlchemyProvider:
    return AlchemyProvider()


def get_snapshot_provider() -> SnapshotProvider:
    return SnapshotProvider()


def get_oracle() -> PriceOracle:
    return get_price_oracle()


def get_chat_services() -> ChatServices:
    alchemy = get_alchemy_provider()
    return ChatServices(
        alchemy=alchemy,
        oracle=get_oracle(),
        snapshot=get_snapshot_provider(),
        transfers=TransferAggregator(alchemy),
        app_base_url=settings.app_base_url,
    )


def require_rpc(provider: AlchemyProvider) -> None:
    """Configuration is checked per request so the app can boot without keys."""
    if not provider.base_url:
        raise HTTPException(status_code=500, detail=MISSING_RPC_MESSAGE)


def valid_address_or_400(address: str) -> str:
    normalized = normalize_address(address)
    if not is_eth_address(normalized):
        raise HTTPException(status_code=400, detail="Invalid address")
    return normalized
