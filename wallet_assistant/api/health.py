from typing import Any, Dict

from fastapi import APIRouter

from ..providers.alchemy import AlchemyProvider
from ..providers.coingecko import CoingeckoProvider
from ..providers.defillama import DefiLlamaProvider
from ..providers.snapshot import SnapshotProvider

router = APIRouter()


@router.get("/healthz")
async def health_check() -> Dict[str, Any]:
    """Configuration-level readiness of each upstream provider"""

    providers = [AlchemyProvider(), CoingeckoProvider(), DefiLlamaProvider(), SnapshotProvider()]
    provider_status = {provider.name: await provider.health_check() for provider in providers}

    rpc_ready = provider_status["alchemy"]["status"] == "healthy"
    available_providers = sum(
        1 for status in provider_status.values()
        if status["status"] == "healthy"
    )

    return {
        "status": "healthy" if rpc_ready else "degraded",
        "providers": provider_status,
        "available_providers": available_providers,
        "total_providers": len(provider_status),
    }
