"""Chat dispatch: classify the query, run one handler, stream its reply."""

from __future__ import annotations

import asyncio
import time
from dataclasses import asdict, dataclass, field
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, List, Optional

import httpx
import structlog

from ..errors import UpstreamError, WalletAssistantError
from ..providers.alchemy import AlchemyProvider
from ..providers.snapshot import SnapshotProvider
from ..services.address import find_tx_hash, is_eth_address, normalize_address
from ..services.dao import get_open_proposals
from ..services.http import fetch_with_timeout
from ..services.prices import PriceOracle
from ..services.receipts import gas_components, get_tx_and_receipt
from ..services.transfers import TransferAggregator, parse_transfer
from ..services.units import format_eth, format_usd, wei_to_eth
from ..types import DaoProposal
from .intents import REQUIRES_ADDRESS, Intent, classify
from .streaming import reply_frames, stream_frames

_logger = structlog.stdlib.get_logger("chat")

MAX_QUERY_LENGTH = 1024

GAS_TRANSFER_LOOKUP = 200
GAS_SAMPLE_SIZE = 20
GAS_BATCH_SIZE = 6
ACTIVITY_TRANSFER_LOOKUP = 50
ACTIVITY_TEXT_ITEMS = 10
ACTIVITY_PAYLOAD_ITEMS = 25
DAO_TEXT_ITEMS = 5
DAO_PAYLOAD_ITEMS = 25
DAO_ROUTE_TIMEOUT_SECONDS = 8.0

MISSING_ADDRESS_TEXT = "Missing or invalid wallet address. Connect wallet and provide a valid 0x... address."
FALLBACK_TEXT = 'I couldn\'t classify your query. Try "gas spent", "portfolio PnL", or "recent transactions".'

_STATUS_LABELS = {
    "success": "✅ success",
    "failed": "❌ failed",
    "pending": "⏳ pending",
}


@dataclass
class ChatReply:
    text: str
    structured: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatServices:
    """Collaborators a chat request may touch; built per request."""

    alchemy: AlchemyProvider
    oracle: PriceOracle
    snapshot: SnapshotProvider
    transfers: Optional[TransferAggregator] = None
    app_base_url: str = ""
    http_transport: Optional[httpx.AsyncBaseTransport] = None

    def __post_init__(self) -> None:
        if self.transfers is None:
            self.transfers = TransferAggregator(self.alchemy)


Handler = Callable[[str, str, ChatServices], Awaitable[ChatReply]]


def _usd(amount_eth: float, price: float) -> float:
    return amount_eth * price


async def handle_tx_lookup(query: str, address: str, services: ChatServices) -> ChatReply:
    tx_hash = find_tx_hash(query)
    if not tx_hash:
        return ChatReply("Transaction hash not found in query.")

    pair = await get_tx_and_receipt(services.alchemy, tx_hash)
    if not pair.found:
        return ChatReply(f"Transaction {tx_hash} not found.")

    fee_eth = pair.fee_eth
    fee_usd = _usd(fee_eth, await services.oracle.get_eth_usd_price())
    text = (
        f"Tx {tx_hash[:10]}… {_STATUS_LABELS[pair.status]}. "
        f"Gas fee: {format_eth(fee_eth)} ETH (~${format_usd(fee_usd)})."
    )
    return ChatReply(text, {
        "answer": text,
        "tx": pair.tx_result,
        "receipt": pair.receipt_result,
        "status": pair.status,
        "feeEth": fee_eth,
        "feeUsd": fee_usd,
    })


async def handle_gas(query: str, address: str, services: ChatServices) -> ChatReply:
    transfers = await services.transfers.get_transfers(address, GAS_TRANSFER_LOOKUP)
    sample = [t["hash"] for t in transfers[:GAS_SAMPLE_SIZE]]

    total_wei = 0
    priced = 0
    for start in range(0, len(sample), GAS_BATCH_SIZE):
        batch = sample[start:start + GAS_BATCH_SIZE]
        results = await asyncio.gather(
            *(get_tx_and_receipt(services.alchemy, tx_hash) for tx_hash in batch),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                _logger.debug("gas_receipt_skipped", error=str(result))
                continue
            gas_used, price = gas_components(result.tx_result, result.receipt_result)
            if gas_used > 0 and price > 0:
                total_wei += gas_used * price
                priced += 1

    total_eth = wei_to_eth(total_wei)
    usd = _usd(total_eth, await services.oracle.get_eth_usd_price())
    text = f"Estimated gas used in {priced} txs: {format_eth(total_eth)} ETH (~${format_usd(usd)})."
    return ChatReply(text, {
        "answer": text,
        "approxCount": priced,
        "totalGasEth": total_eth,
        "usd": usd,
    })


async def handle_portfolio(query: str, address: str, services: ChatServices) -> ChatReply:
    balance = wei_to_eth(await services.alchemy.get_balance(address))
    usd = _usd(balance, await services.oracle.get_eth_usd_price())
    text = f"Wallet balance: {format_eth(balance)} ETH (~${format_usd(usd)})."
    return ChatReply(text, {
        "answer": text,
        "balance": balance,
        "balanceEth": balance,
        "usd": usd,
    })


async def handle_activity(query: str, address: str, services: ChatServices) -> ChatReply:
    transfers = await services.transfers.get_transfers(address, ACTIVITY_TRANSFER_LOOKUP)
    parsed = [summary for summary in map(parse_transfer, transfers) if summary.amount > 0]
    shown = parsed[:ACTIVITY_TEXT_ITEMS]
    eth_usd = await services.oracle.get_eth_usd_price()

    if shown:
        lines = "\n".join(
            f"• {item.hash[:10]}…  {item.amount:.6f} {item.symbol}  ({item.date})" for item in shown
        )
        text = f"Here are your {len(shown)} most recent transfers:\n{lines}"
    else:
        text = "No recent non-zero transfers found."

    return ChatReply(text, {
        "answer": text,
        "items": [asdict(item) for item in parsed[:ACTIVITY_PAYLOAD_ITEMS]],
        "source": "alchemy",
        "priceEth": eth_usd,
    })


async def _load_open_proposals(address: str, services: ChatServices) -> List[DaoProposal]:
    if not services.app_base_url:
        return await get_open_proposals(address, services.snapshot)

    url = f"{services.app_base_url.rstrip('/')}/dao/{address}/votes"
    response = await fetch_with_timeout(
        "GET",
        url,
        timeout=DAO_ROUTE_TIMEOUT_SECONDS,
        transport=services.http_transport,
        source="dao votes",
    )
    if not response.is_success:
        raise UpstreamError("dao votes", response.text, status=response.status_code)
    data = response.json()
    items = (data.get("open") or []) if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise UpstreamError("dao votes", "unexpected response shape", status=response.status_code)
    return [DaoProposal.model_validate(item) for item in items]


async def handle_dao(query: str, address: str, services: ChatServices) -> ChatReply:
    try:
        proposals = await _load_open_proposals(address, services)
    except (WalletAssistantError, ValueError) as exc:
        _logger.warning("dao_fetch_failed", error=str(exc))
        status = getattr(exc, "status", None)
        if status is None:
            return ChatReply("Failed to fetch DAO proposals (network error).", {
                "error": "dao_fetch_failed",
                "detail": str(exc),
            })
        return ChatReply("Failed to fetch DAO proposals.", {"error": "dao_fetch_failed", "status": status})

    if not proposals:
        return ChatReply("No active DAO proposals found.")

    lines = "\n".join(
        f"• {p.dao}: {p.title} (ends {p.ends[:10]})" for p in proposals[:DAO_TEXT_ITEMS]
    )
    text = f"Here are {len(proposals)} open DAO proposals you can review:\n{lines}"
    return ChatReply(text, {
        "answer": text,
        "proposals": [p.model_dump() for p in proposals[:DAO_PAYLOAD_ITEMS]],
    })


async def handle_fallback(query: str, address: str, services: ChatServices) -> ChatReply:
    return ChatReply(FALLBACK_TEXT)


HANDLERS: Dict[Intent, Handler] = {
    Intent.TX_LOOKUP: handle_tx_lookup,
    Intent.GAS: handle_gas,
    Intent.PORTFOLIO: handle_portfolio,
    Intent.ACTIVITY: handle_activity,
    Intent.DAO: handle_dao,
    Intent.FALLBACK: handle_fallback,
}


async def dispatch(query: Optional[str], address: Optional[str], services: ChatServices) -> ChatReply:
    """Run exactly one handler for the query. Errors propagate to the caller."""

    text = (query or "").strip()[:MAX_QUERY_LENGTH].lower()
    wallet = normalize_address(address)
    intent = classify(text)

    if intent in REQUIRES_ADDRESS and not is_eth_address(wallet):
        _logger.info("chat_missing_address", intent=intent.value)
        return ChatReply(MISSING_ADDRESS_TEXT, {"error": "missing_address"})

    started = time.perf_counter()
    reply = await HANDLERS[intent](text, wallet, services)
    _logger.info(
        "chat_dispatch",
        intent=intent.value,
        duration_ms=round((time.perf_counter() - started) * 1000, 1),
    )
    return reply


def stream_ai(query: Optional[str], address: Optional[str], services: ChatServices) -> AsyncGenerator[str, None]:
    """Encoded frames for one chat request; always ends with the done sentinel."""

    async def event_generator() -> AsyncGenerator[str, None]:
        try:
            reply = await dispatch(query, address, services)
            frames = reply_frames(reply.text, reply.structured)
        except Exception as exc:  # every failure becomes an error frame
            _logger.error("ai_stream_error", error=str(exc), exc_info=True)
            message = f"AI route stream error: {exc}"
            frames = reply_frames(message, {"error": message})

        async for chunk in stream_frames(frames):
            yield chunk

    return event_generator()


__all__ = [
    "ChatReply",
    "ChatServices",
    "HANDLERS",
    "FALLBACK_TEXT",
    "MISSING_ADDRESS_TEXT",
    "dispatch",
    "stream_ai",
]
