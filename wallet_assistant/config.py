from pathlib import Path
from typing import Any, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Normalize values that are commonly pasted with stray whitespace."""

        super().model_post_init(__context)

        network = (self.alchemy_network or "").strip() or "mainnet"
        object.__setattr__(self, "alchemy_network", network)
        object.__setattr__(self, "alchemy_base_url", (self.alchemy_base_url or "").strip())

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # External API Keys
    alchemy_api_key: str = Field(default="", description="Alchemy API key")
    alchemy_network: str = Field(default="mainnet", description="Alchemy network slug (eth-<network>)")
    alchemy_base_url: str = Field(
        default="",
        description="Explicit JSON-RPC endpoint; takes precedence over key + network",
        validation_alias=AliasChoices("alchemy_base_url", "ALCHEMY_BASE_URL", "ALCHEMY_API_URL"),
    )
    coingecko_api_key: str = Field(default="", description="Coingecko API key")

    # Upstream endpoints
    coingecko_base_url: str = Field(
        default="https://api.coingecko.com/api/v3",
        description="Coingecko REST base URL",
    )
    defillama_price_url: str = Field(
        default="https://coins.llama.fi/prices/current/coingecko:ethereum",
        description="Secondary ETH/USD price source",
    )
    snapshot_graphql_url: str = Field(
        default="https://hub.snapshot.org/graphql",
        description="Snapshot governance GraphQL endpoint",
    )
    app_base_url: str = Field(
        default="",
        description="Public base URL of this service, used for self-referential DAO lookups",
        validation_alias=AliasChoices("app_base_url", "APP_BASE_URL", "NEXT_PUBLIC_BASE_URL"),
    )

    # Timeouts & retries
    rpc_timeout_seconds: float = Field(default=10.0, description="JSON-RPC request timeout")
    price_timeout_seconds: float = Field(default=8.0, description="Price API request timeout")
    snapshot_timeout_seconds: float = Field(default=10.0, description="Snapshot request timeout")
    http_retries: int = Field(default=1, ge=0, le=5, description="Retries on 429/5xx/network errors")

    # Cache Settings
    price_cache_ttl_seconds: int = Field(default=300, description="ETH/USD price freshness window")
    token_price_cache_ttl_seconds: int = Field(default=120, description="Per-contract token price freshness window")

    # Provider Toggles
    enable_alchemy: bool = Field(default=True, description="Enable Alchemy provider")
    enable_coingecko: bool = Field(default=True, description="Enable Coingecko provider")

    @property
    def alchemy_base(self) -> Optional[str]:
        """Resolved JSON-RPC endpoint, or None when nothing is configured."""
        if self.alchemy_base_url:
            return self.alchemy_base_url
        if self.alchemy_api_key:
            return f"https://eth-{self.alchemy_network}.g.alchemy.com/v2/{self.alchemy_api_key}"
        return None


# Global settings instance
settings = Settings()
