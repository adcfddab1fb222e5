import asyncio
import json

import httpx
import pytest

from wallet_assistant.providers.alchemy import AlchemyProvider
from wallet_assistant.services.prices import PriceOracle

RPC_URL = "https://eth-mainnet.rpc.test/v2/test-key"
WALLET = "0x" + "ab" * 20


class RpcStub:
    """JSON-RPC endpoint backed by per-method handlers.

    A handler receives the call params and returns either the ``result``
    member or a ready ``httpx.Response``. Unknown methods answer ``null``.
    """

    def __init__(self, handlers=None):
        self.handlers = dict(handlers or {})
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method, params = body["method"], body.get("params") or []
        self.calls.append((method, params))

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            handler = self.handlers.get(method)
            result = handler(*params) if handler else None
        finally:
            self.in_flight -= 1

        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def provider(self, retries: int = 0) -> AlchemyProvider:
        return AlchemyProvider(RPC_URL, retries=retries, transport=httpx.MockTransport(self.handle))

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def params_for(self, method: str):
        return [params for name, params in self.calls if name == method]


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StaticPriceSource:
    def __init__(self, price, name: str = "static"):
        self.name = name
        self.price = price
        self.calls = 0

    async def get_eth_price(self):
        self.calls += 1
        await asyncio.sleep(0)
        if isinstance(self.price, Exception):
            raise self.price
        return self.price


class StaticTokenSource:
    def __init__(self, prices=None, error=None):
        self.prices = {k.lower(): v for k, v in (prices or {}).items()}
        self.error = error
        self.calls = []

    async def get_token_price(self, contract_address: str) -> float:
        self.calls.append(contract_address)
        if self.error is not None:
            raise self.error
        return self.prices.get(contract_address.lower(), 0.0)


class SnapshotStub:
    name = "snapshot"

    def __init__(self, proposals=None, error=None):
        self.proposals = proposals or []
        self.error = error
        self.calls = []

    async def get_active_proposals(self, spaces, first=20):
        self.calls.append({"spaces": list(spaces), "first": first})
        if self.error is not None:
            raise self.error
        return list(self.proposals)


@pytest.fixture
def wallet():
    return WALLET


@pytest.fixture
def rpc_stub():
    return RpcStub()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def price_source():
    return StaticPriceSource(2000.0)


@pytest.fixture
def token_source():
    return StaticTokenSource()


@pytest.fixture
def oracle(price_source, token_source, clock):
    return PriceOracle(
        sources=[price_source],
        token_source=token_source,
        ttl_seconds=300,
        token_ttl_seconds=120,
        clock=clock,
        failure_delay=0,
    )


@pytest.fixture
def snapshot_stub():
    return SnapshotStub()


@pytest.fixture
def make_price_source():
    return StaticPriceSource


@pytest.fixture
def make_token_source():
    return StaticTokenSource


@pytest.fixture
def make_snapshot():
    return SnapshotStub
