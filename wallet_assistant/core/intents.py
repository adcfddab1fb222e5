"""Keyword intent classification for chat queries.

Rules are checked in order and the first match wins, so a transaction hash
beats any keyword that appears alongside it.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Callable, List, Tuple


class Intent(str, Enum):
    TX_LOOKUP = "tx_lookup"
    GAS = "gas"
    PORTFOLIO = "portfolio"
    ACTIVITY = "activity"
    DAO = "dao"
    FALLBACK = "fallback"


TX_HASH_PATTERN = re.compile(r"0x[a-f0-9]{64}", re.IGNORECASE)
GAS_PATTERN = re.compile(r"gas", re.IGNORECASE)
PORTFOLIO_PATTERN = re.compile(r"pnl|portfolio|net worth", re.IGNORECASE)
ACTIVITY_PATTERN = re.compile(r"recent|activity|transactions", re.IGNORECASE)
DAO_PATTERN = re.compile(r"dao|proposal|vote|votes due|governance", re.IGNORECASE)

Predicate = Callable[[str], bool]


def _matches(pattern: re.Pattern) -> Predicate:
    return lambda text: bool(pattern.search(text))


INTENT_RULES: List[Tuple[Intent, Predicate]] = [
    (Intent.TX_LOOKUP, _matches(TX_HASH_PATTERN)),
    (Intent.GAS, _matches(GAS_PATTERN)),
    (Intent.PORTFOLIO, _matches(PORTFOLIO_PATTERN)),
    (Intent.ACTIVITY, _matches(ACTIVITY_PATTERN)),
    (Intent.DAO, _matches(DAO_PATTERN)),
]

REQUIRES_ADDRESS = frozenset({Intent.GAS, Intent.PORTFOLIO, Intent.ACTIVITY, Intent.DAO})


def classify(query: str) -> Intent:
    text = (query or "").lower()
    for intent, predicate in INTENT_RULES:
        if predicate(text):
            return intent
    return Intent.FALLBACK


__all__ = ["Intent", "INTENT_RULES", "REQUIRES_ADDRESS", "classify"]
