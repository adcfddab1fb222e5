from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # Tests hand in an httpx.MockTransport; production uses the default pool
        self.transport = transport

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    async def health_check(self) -> Dict[str, Any]:
        """Return provider readiness without touching the network"""
        if not await self.ready():
            return {"status": "unavailable", "reason": "Not configured or provider disabled"}
        return {"status": "healthy"}
