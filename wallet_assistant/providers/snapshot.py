from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import settings
from ..errors import UpstreamError
from ..services.http import fetch_with_timeout
from .base import Provider

ACTIVE_PROPOSALS_QUERY = """
  query Proposals($spaces: [String!], $first: Int!) {
    proposals(
      first: $first,
      where: { space_in: $spaces, state: "active" },
      orderBy: "end",
      orderDirection: asc
    ) {
      id
      title
      body
      end
      start
      space {
        id
        name
      }
      link
    }
  }
"""


class SnapshotProvider(Provider):
    """Snapshot hub GraphQL client for governance proposals"""

    name = "snapshot"

    def __init__(
        self,
        graphql_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(transport)
        self.graphql_url = graphql_url or settings.snapshot_graphql_url
        self.timeout_s = timeout_s if timeout_s is not None else settings.snapshot_timeout_seconds

    async def ready(self) -> bool:
        return bool(self.graphql_url)

    async def get_active_proposals(self, spaces: Sequence[str], first: int = 20) -> List[Dict[str, Any]]:
        response = await fetch_with_timeout(
            "POST",
            self.graphql_url,
            json={
                "query": ACTIVE_PROPOSALS_QUERY,
                "variables": {"spaces": list(spaces), "first": first},
            },
            headers={"Content-Type": "application/json"},
            timeout=self.timeout_s,
            transport=self.transport,
            source="snapshot",
        )
        if not response.is_success:
            raise UpstreamError("snapshot", response.text, status=response.status_code)

        try:
            payload = response.json()
        except ValueError:
            return []
        proposals = ((payload or {}).get("data") or {}).get("proposals") or []
        return [p for p in proposals if isinstance(p, dict)]
