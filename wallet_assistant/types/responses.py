from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DaoProposal(BaseModel):
    title: Optional[str] = Field(default=None, description="Proposal title")
    dao: Optional[str] = Field(default=None, description="Space name, or id when unnamed")
    link: str = Field(description="Proposal URL")
    ends: str = Field(description="Voting end time, ISO-8601 UTC")


class DaoVotesResponse(BaseModel):
    address: str = Field(description="Wallet address the lookup was made for")
    open: List[DaoProposal] = Field(default_factory=list, description="Proposals still accepting votes")
    count: int = Field(description="Number of open proposals")
    source: str = Field(default="snapshot.org", description="Data source")


class PortfolioAsset(BaseModel):
    symbol: str = Field(description="Token symbol (e.g. ETH, USDC)")
    name: str = Field(description="Full token name")
    balance: float = Field(description="Balance in display units")
    usd: float = Field(default=0.0, description="Balance value in USD")
    contract: Optional[str] = Field(default=None, description="Token contract address (None for native ETH)")


class PortfolioResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str = Field(description="Wallet address")
    total_usd: float = Field(alias="totalUsd", description="Total portfolio value in USD")
    assets: List[PortfolioAsset] = Field(default_factory=list, description="Non-zero balances, ETH first")
    source: str = Field(default="alchemy+coingecko", description="Data sources used")


class PnlPoint(BaseModel):
    date: str = Field(description="UTC calendar date, YYYY-MM-DD")
    eth: float = Field(description="ETH balance for the day")
    usd: Optional[float] = Field(default=None, description="USD value when a price was applied")


class PnlResponse(BaseModel):
    address: str = Field(description="Wallet address")
    series: List[PnlPoint] = Field(default_factory=list, description="One point per day, oldest first")
    note: str = Field(description="How the series was produced")
    source: str = Field(description="Data source")


class TxsResponse(BaseModel):
    address: str = Field(description="Wallet address")
    txs: List[Dict[str, Any]] = Field(default_factory=list, description="Transfers, newest first")
    source: str = Field(default="alchemy", description="Data source")
