from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AiRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: Optional[str] = Field(default="", description="Free-text question about the wallet")
    address: Optional[str] = Field(default=None, description="Connected wallet address")
    range_days: Optional[int] = Field(
        default=None,
        alias="rangeDays",
        description="Lookback window hint for time-based questions",
    )
