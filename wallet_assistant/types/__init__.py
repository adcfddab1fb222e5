from .requests import AiRequest
from .responses import (
    DaoProposal,
    DaoVotesResponse,
    PnlPoint,
    PnlResponse,
    PortfolioAsset,
    PortfolioResponse,
    TxsResponse,
)

__all__ = [
    "AiRequest",
    "DaoProposal",
    "DaoVotesResponse",
    "PnlPoint",
    "PnlResponse",
    "PortfolioAsset",
    "PortfolioResponse",
    "TxsResponse",
]
