"""Open governance proposals across a fixed set of Snapshot spaces."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..providers.snapshot import SnapshotProvider
from ..types import DaoProposal

logger = logging.getLogger(__name__)

DAO_SPACES = (
    "uniswap",
    "aave.eth",
    "ens.eth",
    "arbitrumfoundation.eth",
    "compound.eth",
    "balancer.eth",
    "optimism.eth",
)
MAX_PROPOSALS = 20
SNAPSHOT_PROPOSAL_URL = "https://snapshot.org/#/{space}/proposal/{id}"


def _end_seconds(proposal: dict) -> Optional[float]:
    try:
        return float(proposal.get("end") or 0)
    except (TypeError, ValueError):
        return None


def to_dao_proposal(proposal: dict) -> DaoProposal:
    space = proposal.get("space") or {}
    end = _end_seconds(proposal) or 0.0
    return DaoProposal(
        title=proposal.get("title"),
        dao=space.get("name") or space.get("id"),
        link=proposal.get("link") or SNAPSHOT_PROPOSAL_URL.format(space=space.get("id"), id=proposal.get("id")),
        ends=datetime.fromtimestamp(end, tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    )


async def get_open_proposals(
    address: str,
    provider: SnapshotProvider,
    *,
    spaces: Sequence[str] = DAO_SPACES,
    now: Optional[float] = None,
) -> list[DaoProposal]:
    """Active proposals whose voting window ends after ``now``.

    ``address`` is accepted for symmetry with the route but does not narrow
    the result: every caller sees the same spaces.
    """

    now_seconds = time.time() if now is None else now
    proposals = await provider.get_active_proposals(spaces, first=MAX_PROPOSALS)

    open_proposals = []
    for proposal in proposals:
        end = _end_seconds(proposal)
        if end is None or end <= now_seconds:
            continue
        open_proposals.append(proposal)

    logger.debug("%d of %d proposals open for %s", len(open_proposals), len(proposals), address)
    return [to_dao_proposal(p) for p in open_proposals[:MAX_PROPOSALS]]


__all__ = ["DAO_SPACES", "MAX_PROPOSALS", "get_open_proposals", "to_dao_proposal"]
