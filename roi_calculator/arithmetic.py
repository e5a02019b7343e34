"""
Tri-state arithmetic — the single division rule for every ratio.

THIS IS THE ONLY PLACE A RATIO IS COMPUTED.

Return-on-spend, fee rate, and the target conversions all route through
divide(), so "what happens at zero" is decided exactly once:

    numerator  denominator   result
    ---------  -----------   ---------------------------------------
    None       any           Undefined(missing)
    any        None          Undefined(missing)
    0          0             Undefined(both_zero or "0/0 is undefined")
    x != 0     0             Infinite(denom_zero)
    x          y != 0        Value(x / y), or Infinite(overflow) past float range

No branch raises and no branch produces NaN or infinity as a number.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .models import CalcValue, Infinite, Undefined, Value

DEFAULT_BOTH_ZERO_REASON = "0/0 is undefined"
OVERFLOW_REASON = "Result is too large to show"


@dataclass(frozen=True)
class DivisionReasons:
    """Operator-facing explanations attached to non-numeric results."""

    missing: str  # Either operand absent
    denom_zero: str  # Denominator zero, numerator not
    both_zero: str | None = None  # Both zero; falls back to DEFAULT_BOTH_ZERO_REASON


def divide(
    numerator: float | None,
    denominator: float | None,
    reasons: DivisionReasons,
) -> CalcValue:
    """Classify and compute ``numerator / denominator``."""
    if numerator is None or denominator is None:
        return Undefined(reason=reasons.missing)
    if denominator == 0:
        if numerator == 0:
            return Undefined(reason=reasons.both_zero or DEFAULT_BOTH_ZERO_REASON)
        return Infinite(reason=reasons.denom_zero)
    quotient = numerator / denominator
    if not math.isfinite(quotient):
        return Infinite(reason=OVERFLOW_REASON)
    return Value(value=quotient)


def net_amount(gmv: float | None, refund_rate: float | None) -> float | None:
    """Amount left after refunds: ``gmv * (1 - refund_rate)``.

    None when either operand is absent; this feeds every net-basis ratio.
    """
    if gmv is None or refund_rate is None:
        return None
    return gmv * (1 - refund_rate)
