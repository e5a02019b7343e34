"""
Defaulting and window-selection policy shared by every reporting window.

Two rules decide which numbers reach the arithmetic layer:

  1. A field with a validation error is ABSENT. Its raw text never leaks
     into a calculation.
  2. A blank refund rate is ZERO (the operator simply has no refunds yet),
     unless the caller opts out with ``default_blank=None``, which the
     forecast and the target fee rate do.

The full composer and the scenario list summary both call these functions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .models import BaseMode, Inputs
from .parsing import is_blank, parse_money, parse_rate
from .validators import FieldValidator, money_error, refund_rate_error

EXACT_LABEL = "Trailing-hour exact (gmv, spend and refund rate from the same window)"
ESTIMATED_LABEL = "Daily estimate (gmv/spend from today, refund rate from the trailing hour)"


def usable_amount(text: str) -> float | None:
    """Parsed amount, or None when blank or invalid."""
    value = parse_money(text)
    if money_error(text, value) is not None:
        return None
    return value


def usable_rate(
    text: str,
    validator: FieldValidator = refund_rate_error,
    *,
    default_blank: float | None = 0.0,
) -> float | None:
    """Apply the blank-means-zero policy to a rate field.

    Args:
        text: Raw field text.
        validator: The check for this field's kind.
        default_blank: What a blank field means. 0.0 for realized and target
            refund rates; None where a blank must stay absent.

    Returns:
        The rate to compute with, or None when it is unusable.
    """
    rate = parse_rate(text)
    if validator(text, rate) is not None:
        return None
    if is_blank(text):
        return default_blank
    return rate


# ─── Base Window Selection ───────────────────────────────────────────


@dataclass(frozen=True)
class BaseWindow:
    """The figures chosen for platform-side reconciliation."""

    mode: BaseMode
    gmv: float | None
    spend: float | None
    refund_rate: float | None

    @property
    def label(self) -> str:
        return EXACT_LABEL if self.mode is BaseMode.EXACT else ESTIMATED_LABEL


def select_base_window(inputs: Inputs) -> BaseWindow:
    """Pick trailing-hour figures when both are usable, else today's.

    The trailing-hour refund rate is used in both modes; only the gmv/spend
    source changes.
    """
    refund_rate = usable_rate(inputs.platform_refund_rate_1h)
    hour_gmv = usable_amount(inputs.one_hour_gmv)
    hour_spend = usable_amount(inputs.one_hour_spend)

    if hour_gmv is not None and hour_spend is not None:
        return BaseWindow(BaseMode.EXACT, hour_gmv, hour_spend, refund_rate)

    return BaseWindow(
        BaseMode.ESTIMATED,
        usable_amount(inputs.today_gmv),
        usable_amount(inputs.today_spend),
        refund_rate,
    )


# ─── Target Refund Shortcut ──────────────────────────────────────────


class RefundSource(str, Enum):
    """Where the target refund rate can be copied from."""

    TODAY = "today"
    TRAILING_HOUR = "hour"


def with_target_refund_from(inputs: Inputs, source: RefundSource) -> Inputs:
    """Copy a realized refund rate's text into the target refund field.

    A blank source copies as "0" so the target field reads as explicitly zero.
    """
    if source is RefundSource.TODAY:
        text = inputs.today_refund_rate
    else:
        text = inputs.platform_refund_rate_1h
    return inputs.model_copy(update={"target_refund_rate": text or "0"})
