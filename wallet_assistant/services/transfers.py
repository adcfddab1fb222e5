"""Merged incoming/outgoing transfer history for a wallet."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..errors import TransferDecodeError
from ..providers.alchemy import AlchemyProvider
from .units import integer_to_decimal, to_integer, wei_to_eth

logger = logging.getLogger(__name__)

TRANSFER_CATEGORIES = ["external", "internal", "erc20", "erc721", "erc1155"]
MIN_TRANSFERS = 1
MAX_TRANSFERS = 200
EXPLORER_TX_URL = "https://etherscan.io/tx/{hash}"

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass(slots=True)
class TransferSummary:
    hash: str
    date: str
    amount: float
    symbol: str
    explorer: str


def clamp_max_count(value: object, low: int = MIN_TRANSFERS, high: int = MAX_TRANSFERS) -> int:
    count = to_integer(value) if not isinstance(value, int) else value
    return min(max(low, count), high)


def decode_transfers(raw: Any) -> list[dict]:
    """Accept the response shapes alchemy_getAssetTransfers has been seen to return.

    ``None`` means no data; a list is taken as-is; an object is either a page
    (``{"transfers": [...]}``) or a single transfer (has ``hash``). Anything
    else raises ``TransferDecodeError``.
    """

    if raw is None:
        return []
    if isinstance(raw, list):
        return [t for t in raw if isinstance(t, dict)]
    if isinstance(raw, dict):
        transfers = raw.get("transfers")
        if isinstance(transfers, list):
            return [t for t in transfers if isinstance(t, dict)]
        if raw.get("hash"):
            return [raw]
    raise TransferDecodeError(raw)


def transfer_datetime(transfer: dict) -> datetime:
    raw = (transfer.get("metadata") or {}).get("blockTimestamp")
    if not raw or not isinstance(raw, str):
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def transfer_timestamp(transfer: dict) -> float:
    """Block time in epoch seconds; missing or malformed sorts as 0."""
    return transfer_datetime(transfer).timestamp()


def merge_transfers(outgoing: Iterable[dict], incoming: Iterable[dict], limit: int) -> list[dict]:
    """Union two transfer lists, one entry per hash, newest first.

    On a hash collision the strictly later timestamp wins; ties keep the
    entry seen first (outgoing before incoming).
    """

    by_hash: dict[str, dict] = {}
    for transfer in [*outgoing, *incoming]:
        tx_hash = transfer.get("hash")
        if not tx_hash or not isinstance(tx_hash, str):
            continue
        key = tx_hash.lower()
        previous = by_hash.get(key)
        if previous is None or transfer_timestamp(transfer) > transfer_timestamp(previous):
            by_hash[key] = transfer

    ordered = sorted(by_hash.values(), key=transfer_timestamp, reverse=True)
    return ordered[: max(limit, 0)]


def _native_amount(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    if isinstance(value, str) and value.strip().lower().startswith("0x"):
        return wei_to_eth(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _transfer_amount(transfer: dict) -> float:
    amount = _native_amount(transfer.get("value"))
    if amount > 0:
        return amount

    erc20 = transfer.get("erc20Token") or {}
    raw = erc20.get("value") or erc20.get("rawValue")
    if raw and erc20.get("tokenDecimals") is not None:
        amount = integer_to_decimal(raw, to_integer(erc20.get("tokenDecimals")))
        if amount > 0:
            return amount

    raw_contract = transfer.get("rawContract") or {}
    if raw_contract.get("value"):
        decimals = raw_contract.get("decimal")
        amount = integer_to_decimal(raw_contract["value"], to_integer(decimals) if decimals is not None else 18)
        if amount > 0:
            return amount

    try:
        return max(float(transfer.get("amount") or 0), 0.0)
    except (TypeError, ValueError):
        return 0.0


def parse_transfer(transfer: dict) -> TransferSummary:
    tx_hash = transfer.get("hash") or ""
    symbol = transfer.get("asset") or (transfer.get("erc20Token") or {}).get("tokenSymbol") or "ETH"
    return TransferSummary(
        hash=tx_hash,
        date=transfer_datetime(transfer).strftime("%d/%m/%Y, %H:%M:%S"),
        amount=_transfer_amount(transfer),
        symbol=symbol,
        explorer=EXPLORER_TX_URL.format(hash=tx_hash),
    )


class TransferAggregator:
    """Fetches outgoing and incoming transfers in parallel and merges them."""

    def __init__(self, provider: AlchemyProvider, categories: Optional[list[str]] = None):
        self.provider = provider
        self.categories = categories or list(TRANSFER_CATEGORIES)

    def build_filter(self, max_count: int) -> dict[str, Any]:
        return {
            "fromBlock": "0x0",
            "toBlock": "latest",
            "category": list(self.categories),
            "maxCount": hex(max_count),
            "withMetadata": True,
            "excludeZeroValue": False,
        }

    async def get_transfers(
        self, address: str, max_count: int = 50, *, high: int = MAX_TRANSFERS
    ) -> list[dict]:
        limit = clamp_max_count(max_count, high=high)
        base = self.build_filter(limit)

        results = await asyncio.gather(
            self.provider.get_asset_transfers({**base, "fromAddress": address}),
            self.provider.get_asset_transfers({**base, "toAddress": address}),
            return_exceptions=True,
        )

        branches: list[list[dict]] = []
        for label, result in zip(("outgoing", "incoming"), results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("%s transfers unavailable for %s: %s", label, address, result)
                branches.append([])
                continue
            try:
                branches.append(decode_transfers(result))
            except TransferDecodeError as exc:
                logger.warning("%s transfers for %s: %s", label, address, exc)
                branches.append([])

        outgoing, incoming = branches
        return merge_transfers(outgoing, incoming, limit)


__all__ = [
    "TRANSFER_CATEGORIES",
    "MAX_TRANSFERS",
    "TransferSummary",
    "TransferAggregator",
    "clamp_max_count",
    "decode_transfers",
    "merge_transfers",
    "parse_transfer",
    "transfer_timestamp",
]
