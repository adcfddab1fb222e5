from datetime import date

import httpx
import pytest

from wallet_assistant.services.portfolio import (
    MAX_PORTFOLIO_TOKENS,
    PNL_NOTE,
    get_pnl_series,
    get_portfolio,
    list_transactions,
)
from wallet_assistant.services.prices import PriceOracle
from wallet_assistant.services.transfers import TransferAggregator

USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
DUST = "0x" + "de" * 20


def _contract(i: int) -> str:
    return f"0x{i:040x}"


@pytest.mark.asyncio
async def test_portfolio_prices_eth_and_tokens(rpc_stub, make_price_source, make_token_source, clock, wallet):
    oracle = PriceOracle(
        sources=[make_price_source(2000.0)],
        token_source=make_token_source({USDC: 1.0}),
        clock=clock,
        failure_delay=0,
    )
    metadata = {
        USDC: {"symbol": "USDC", "name": "USD Coin", "decimals": 6},
        DUST: {"symbol": "DUST", "name": "Dust", "decimals": 18},
    }
    rpc_stub.handlers.update({
        "eth_getBalance": lambda address, block: hex(10**18),
        "alchemy_getTokenBalances": lambda address, kind: {"tokenBalances": [
            {"contractAddress": USDC, "tokenBalance": hex(5_000_000)},
            {"contractAddress": DUST, "tokenBalance": "0x0"},
        ]},
        "alchemy_getTokenMetadata": lambda contract: metadata[contract],
    })

    portfolio = await get_portfolio(wallet, rpc_stub.provider(), oracle)

    assert [a.symbol for a in portfolio.assets] == ["ETH", "USDC"]
    assert portfolio.assets[0].usd == pytest.approx(2000.0)
    assert portfolio.assets[1].balance == 5.0
    assert portfolio.assets[1].contract == USDC
    assert portfolio.total_usd == pytest.approx(2005.0)
    assert portfolio.model_dump(by_alias=True)["totalUsd"] == pytest.approx(2005.0)


@pytest.mark.asyncio
async def test_portfolio_looks_at_first_fifteen_tokens(rpc_stub, oracle, wallet):
    rpc_stub.handlers.update({
        "eth_getBalance": lambda address, block: "0x0",
        "alchemy_getTokenBalances": lambda address, kind: {"tokenBalances": [
            {"contractAddress": _contract(i), "tokenBalance": hex(10**18)} for i in range(1, 21)
        ]},
        "alchemy_getTokenMetadata": lambda contract: {"symbol": "TKN", "name": "Token", "decimals": 18},
    })

    portfolio = await get_portfolio(wallet, rpc_stub.provider(), oracle)

    assert rpc_stub.count("alchemy_getTokenMetadata") == MAX_PORTFOLIO_TOKENS
    assert len(portfolio.assets) == 1 + MAX_PORTFOLIO_TOKENS


@pytest.mark.asyncio
async def test_portfolio_token_metadata_failure_is_skipped(rpc_stub, oracle, wallet):
    rpc_stub.handlers.update({
        "eth_getBalance": lambda address, block: hex(10**18),
        "alchemy_getTokenBalances": lambda address, kind: {"tokenBalances": [
            {"contractAddress": USDC, "tokenBalance": hex(5_000_000)},
        ]},
        "alchemy_getTokenMetadata": lambda contract: httpx.Response(500, text="boom"),
    })

    portfolio = await get_portfolio(wallet, rpc_stub.provider(), oracle)

    assert [a.symbol for a in portfolio.assets] == ["ETH"]


@pytest.mark.asyncio
async def test_pnl_series_is_flat_over_the_range(rpc_stub, wallet):
    rpc_stub.handlers["eth_getBalance"] = lambda address, block: hex(2 * 10**18)

    pnl = await get_pnl_series(wallet, rpc_stub.provider(), 3, today=date(2024, 3, 1))

    assert [p.date for p in pnl.series] == ["2024-02-28", "2024-02-29", "2024-03-01"]
    assert {p.eth for p in pnl.series} == {2.0}
    assert all(p.usd is None for p in pnl.series)
    assert pnl.note == PNL_NOTE
    assert pnl.source == "alchemy-reconstructed"


@pytest.mark.asyncio
@pytest.mark.parametrize("requested, points", [(0, 1), (-4, 1), (30, 30), (1000, 365)])
async def test_pnl_range_is_clamped(rpc_stub, wallet, requested, points):
    rpc_stub.handlers["eth_getBalance"] = lambda address, block: "0x0"

    pnl = await get_pnl_series(wallet, rpc_stub.provider(), requested, today=date(2024, 3, 1))

    assert len(pnl.series) == points


@pytest.mark.asyncio
@pytest.mark.parametrize("requested, max_count", [(1, "0xa"), (50, "0x32"), (300, "0x12c"), (1000, "0x1f4")])
async def test_transaction_list_count_bounds(rpc_stub, wallet, requested, max_count):
    rpc_stub.handlers["alchemy_getAssetTransfers"] = lambda f: {"transfers": []}
    provider = rpc_stub.provider()

    await list_transactions(wallet, TransferAggregator(provider), provider, requested)

    assert {params[0]["maxCount"] for params in rpc_stub.params_for("alchemy_getAssetTransfers")} == {max_count}


@pytest.mark.asyncio
async def test_transaction_list_returns_more_than_chat_limit(rpc_stub, wallet):
    transfers = [
        {"hash": f"0x{i:04x}", "value": 1.0, "asset": "ETH", "category": "external",
         "metadata": {"blockTimestamp": f"2024-01-01T00:{i // 60:02d}:{i % 60:02d}Z"}}
        for i in range(300)
    ]
    rpc_stub.handlers["alchemy_getAssetTransfers"] = (
        lambda f: {"transfers": transfers if "fromAddress" in f else []}
    )
    provider = rpc_stub.provider()

    rows = await list_transactions(wallet, TransferAggregator(provider), provider, 300)

    assert len(rows) == 300
    assert rows[0]["hash"] == "0x012b"


@pytest.mark.asyncio
async def test_transaction_values_fill_in(rpc_stub, wallet):
    transfers = [
        {"hash": "0x01", "value": 0.5, "asset": "ETH", "category": "external",
         "metadata": {"blockTimestamp": "2024-01-03T00:00:00Z"}},
        {"hash": "0x02", "value": None, "category": "erc20",
         "erc20Token": {"tokenSymbol": "USDC", "value": "12"},
         "metadata": {"blockTimestamp": "2024-01-02T00:00:00Z"}},
        {"hash": "0x03", "value": None, "category": "internal",
         "metadata": {"blockTimestamp": "2024-01-01T00:00:00Z"}},
    ]
    rpc_stub.handlers.update({
        "alchemy_getAssetTransfers": lambda f: {"transfers": transfers} if "fromAddress" in f else None,
        "eth_getTransactionByHash": lambda h: {"hash": h, "value": hex(10**18)},
    })
    provider = rpc_stub.provider()

    txs = await list_transactions(wallet, TransferAggregator(provider), provider, 50)

    assert [(t["hash"], t["value"]) for t in txs] == [
        ("0x01", 0.5),
        ("0x02", "USDC 12"),
        ("0x03", "1.000000"),
    ]
    assert rpc_stub.params_for("eth_getTransactionByHash") == [["0x03"]]
