"""Transaction + receipt lookups and the fee/status derived from them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional

from ..providers.alchemy import AlchemyProvider, RpcResult
from .units import to_integer, wei_to_eth

TxStatus = Literal["success", "failed", "pending"]

_SUCCESS_STATUSES = {"0x1", "1", 1}


@dataclass(frozen=True)
class TxReceiptPair:
    hash: str
    tx: RpcResult
    receipt: RpcResult

    @property
    def tx_result(self) -> Optional[dict]:
        result = self.tx.result
        return result if isinstance(result, dict) else None

    @property
    def receipt_result(self) -> Optional[dict]:
        result = self.receipt.result
        return result if isinstance(result, dict) else None

    @property
    def found(self) -> bool:
        return self.tx_result is not None or self.receipt_result is not None

    @property
    def fee_wei(self) -> int:
        return compute_fee_wei(self.tx_result, self.receipt_result)

    @property
    def fee_eth(self) -> float:
        return wei_to_eth(self.fee_wei)

    @property
    def status(self) -> TxStatus:
        return classify_status(self.receipt_result)


async def get_tx_and_receipt(provider: AlchemyProvider, tx_hash: str) -> TxReceiptPair:
    # sequential so batch callers keep one outstanding RPC call per hash
    tx = await provider.get_transaction(tx_hash)
    receipt = await provider.get_receipt(tx_hash)
    return TxReceiptPair(hash=tx_hash, tx=tx, receipt=receipt)


def gas_components(tx: Optional[dict], receipt: Optional[dict]) -> tuple[int, int]:
    """(gasUsed, price) with effectiveGasPrice falling back to the tx gasPrice."""

    receipt = receipt or {}
    tx = tx or {}
    gas_used = to_integer(receipt.get("gasUsed"))
    price: Any = receipt.get("effectiveGasPrice")
    if price in (None, ""):
        price = tx.get("gasPrice")
    return gas_used, to_integer(price)


def compute_fee_wei(tx: Optional[dict], receipt: Optional[dict]) -> int:
    gas_used, price = gas_components(tx, receipt)
    return gas_used * price


def classify_status(receipt: Optional[dict]) -> TxStatus:
    if not receipt:
        return "pending"
    status = receipt.get("status")
    if isinstance(status, str):
        status = status.strip().lower()
    return "success" if status in _SUCCESS_STATUSES else "failed"


__all__ = [
    "TxReceiptPair",
    "TxStatus",
    "get_tx_and_receipt",
    "gas_components",
    "compute_fee_wei",
    "classify_status",
]
