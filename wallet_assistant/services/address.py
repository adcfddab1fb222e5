"""Helpers for validating wallet addresses and spotting transaction hashes."""

from __future__ import annotations

import re
from typing import Optional

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_TX_HASH_RE = re.compile(r"0x[a-fA-F0-9]{64}")


def normalize_address(address: Optional[str]) -> str:
    """Addresses compare case-insensitively, so keep them lower-cased."""

    if not address or not isinstance(address, str):
        return ""
    return address.strip().lower()


def is_eth_address(address: object) -> bool:
    if not address or not isinstance(address, str):
        return False
    return bool(_EVM_ADDRESS_RE.fullmatch(address.strip()))


def find_tx_hash(text: Optional[str]) -> Optional[str]:
    """Return the first 0x-prefixed 64-hex token in ``text``, lower-cased."""

    if not text:
        return None
    match = _TX_HASH_RE.search(text)
    return match.group(0).lower() if match else None


__all__ = ["normalize_address", "is_eth_address", "find_tx_hash"]
