"""Arithmetic guards shared by every calculator.

User profiles routinely contain zero incomes, blank strings and the odd
``"NaN"``.  These helpers turn such values into a usable default instead of
raising, and log the guarded condition at DEBUG level so the cause of a zero
score can be traced.

>>> safe_divide(10, 0, default=-1)
-1
>>> safe_float("1,250.5")
1250.5
>>> clamp(140, 0, 100)
100
"""

from __future__ import annotations

import logging
import math
from typing import Any

logger = logging.getLogger(__name__)


def is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def safe_float(value: Any, default: float = 0.0) -> float:
    """Coerce ``value`` to a finite float, returning ``default`` otherwise.

    Strings may carry thousands separators, currency symbols or a trailing
    percent sign.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace("%", "")
        cleaned = cleaned.lstrip("₪$£€ ")
        if not cleaned:
            return default
        try:
            value = float(cleaned)
        except ValueError:
            logger.debug("Could not parse %r as a number", value)
            return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        logger.debug("Could not coerce %r to float", value)
        return default
    return result if math.isfinite(result) else default


def safe_divide(numerator: float, denominator: float, default: float = 0.0, context: str = "") -> float:
    """Divide, returning ``default`` for a zero or non-finite denominator."""
    if not is_finite_number(numerator) or not is_finite_number(denominator) or denominator == 0:
        logger.debug("Guarded division %r / %r (%s)", numerator, denominator, context or "unnamed")
        return default
    result = numerator / denominator
    if not math.isfinite(result):
        logger.debug("Division produced a non-finite value (%s)", context or "unnamed")
        return default
    return result


def safe_multiply(*factors: float, default: float = 0.0) -> float:
    result = 1.0
    for f in factors:
        if not is_finite_number(f):
            logger.debug("Guarded multiplication with %r", f)
            return default
        result *= f
    return result if math.isfinite(result) else default


def safe_percentage(part: float, whole: float, default: float = 0.0, context: str = "") -> float:
    """``part`` as a percentage of ``whole``."""
    ratio = safe_divide(part, whole, default=None, context=context)
    return default if ratio is None else ratio * 100.0


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


__all__ = [
    "clamp",
    "is_finite_number",
    "safe_divide",
    "safe_float",
    "safe_multiply",
    "safe_percentage",
]
