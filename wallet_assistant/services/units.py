"""Conversions between raw on-chain integers and display amounts."""

from __future__ import annotations

import logging
import math
import re
from decimal import Decimal, InvalidOperation, localcontext
from typing import Optional

logger = logging.getLogger(__name__)

MAX_EXACT_FLOAT_INT = 2**53

_DECIMAL_RE = re.compile(r"^\d+$")
_HEX_RE = re.compile(r"^0[xX][0-9a-fA-F]*$")


def to_integer(value: object) -> int:
    """Coerce hex strings, decimal strings, numbers and Decimals to a non-negative int.

    Anything unparseable (including ``None``) becomes 0. Never raises.
    """

    try:
        if value is None or isinstance(value, bool):
            return 0
        if isinstance(value, int):
            result = value
        elif isinstance(value, float):
            result = int(value) if math.isfinite(value) else 0
        elif isinstance(value, Decimal):
            result = int(value) if value.is_finite() else 0
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return 0
            if _HEX_RE.match(text):
                result = int(text, 16) if len(text) > 2 else 0
            elif _DECIMAL_RE.match(text):
                result = int(text)
            else:
                number = Decimal(text)
                result = int(number) if number.is_finite() else 0
        else:
            return 0
    except (ValueError, ArithmeticError, InvalidOperation):
        return 0
    return max(result, 0)


def integer_to_decimal(value: object, decimals: int = 18) -> float:
    """Scale a base-unit integer down by ``10**decimals``.

    Small values use plain float division; values past float's exact integer
    range divide as Decimals first so the quotient keeps its precision.
    """

    try:
        amount = to_integer(value)
        places = int(decimals)
        if places < 0:
            return 0.0
        if amount <= MAX_EXACT_FLOAT_INT:
            return amount / 10**places
        with localcontext() as ctx:
            ctx.prec = max(len(str(amount)) + places, 28)
            quotient = Decimal(str(amount)) / (Decimal(10) ** places)
        result = float(quotient)
        return result if math.isfinite(result) else 0.0
    except (ValueError, TypeError, ArithmeticError, OverflowError):
        logger.debug("integer_to_decimal failed for %r", value)
        return 0.0


def positive_float(value: object) -> Optional[float]:
    """Return ``value`` as a finite positive float, or None."""
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def wei_to_eth(value: object) -> float:
    return integer_to_decimal(value, 18)


def format_eth(amount: float, places: int = 6) -> str:
    return f"{amount:.{places}f}"


def format_usd(amount: float) -> str:
    return f"{amount:.2f}"


__all__ = [
    "to_integer",
    "integer_to_decimal",
    "wei_to_eth",
    "positive_float",
    "format_eth",
    "format_usd",
]
