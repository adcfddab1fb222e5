import pytest

from wallet_assistant.config import Settings

RPC_ENV = ("ALCHEMY_API_KEY", "ALCHEMY_NETWORK", "ALCHEMY_BASE_URL", "ALCHEMY_API_URL")


@pytest.fixture(autouse=True)
def _clean_rpc_env(monkeypatch):
    for name in RPC_ENV + ("APP_BASE_URL", "NEXT_PUBLIC_BASE_URL"):
        monkeypatch.delenv(name, raising=False)


def test_rpc_url_built_from_key_and_network(monkeypatch):
    monkeypatch.setenv("ALCHEMY_API_KEY", "demo-key")
    monkeypatch.setenv("ALCHEMY_NETWORK", "sepolia")

    settings = Settings()

    assert settings.alchemy_base == "https://eth-sepolia.g.alchemy.com/v2/demo-key"


def test_blank_network_defaults_to_mainnet(monkeypatch):
    monkeypatch.setenv("ALCHEMY_API_KEY", "demo-key")
    monkeypatch.setenv("ALCHEMY_NETWORK", "   ")

    settings = Settings()

    assert settings.alchemy_network == "mainnet"
    assert settings.alchemy_base == "https://eth-mainnet.g.alchemy.com/v2/demo-key"


def test_explicit_rpc_url_wins(monkeypatch):
    """ALCHEMY_API_URL is accepted as a legacy alias for the explicit endpoint."""

    monkeypatch.setenv("ALCHEMY_API_KEY", "demo-key")
    monkeypatch.setenv("ALCHEMY_API_URL", "  https://rpc.example/v2/abc  ")

    settings = Settings()

    assert settings.alchemy_base == "https://rpc.example/v2/abc"


def test_no_rpc_configuration():
    settings = Settings()

    assert settings.alchemy_base is None


def test_app_base_url_alias(monkeypatch):
    monkeypatch.setenv("NEXT_PUBLIC_BASE_URL", "https://wallet.example")

    assert Settings().app_base_url == "https://wallet.example"


def test_defaults():
    settings = Settings()

    assert settings.price_cache_ttl_seconds == 300
    assert settings.token_price_cache_ttl_seconds == 120
    assert settings.http_retries == 1
    assert settings.snapshot_graphql_url == "https://hub.snapshot.org/graphql"
