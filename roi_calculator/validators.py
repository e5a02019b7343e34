"""
Deterministic field validation — the "is this usable?" layer.

Each field validator:
  - Takes the raw text and the value the parser produced from it
  - Returns a human-readable error message, or None when the field is usable
  - Treats blank text as valid ("not provided"); defaulting happens later

A field with an error is never used in a calculation. The validate_all()
function runs the matching check for every input field and collects findings.
"""

from __future__ import annotations

from typing import Callable, Optional

from .models import Inputs, Severity, ValidationFinding
from .parsing import is_blank, parse_money, parse_rate

FieldValidator = Callable[[str, Optional[float]], Optional[str]]


# ─── Individual Validators ───────────────────────────────────────────


def money_error(text: str, value: float | None) -> str | None:
    """An amount must parse and must not be negative."""
    if is_blank(text):
        return None
    if value is None:
        return "Enter an amount (e.g. 125000)"
    if value < 0:
        return "Amount must not be negative"
    return None


def refund_rate_error(text: str, rate: float | None) -> str | None:
    """A refund rate must parse and lie within 0%–100%."""
    if is_blank(text):
        return None
    if rate is None:
        return "Enter a percentage (e.g. 10% or 10)"
    if rate < 0:
        return "Refund rate must not be below 0%"
    if rate > 1:
        return "Refund rate must not exceed 100%"
    return None


def fee_rate_error(text: str, rate: float | None) -> str | None:
    """A fee rate must parse and must not be negative.

    There is no upper bound: spending more than the net amount is a
    legitimate (if painful) fee rate above 100%.
    """
    if is_blank(text):
        return None
    if rate is None:
        return "Enter a fee rate (e.g. 10% or 10)"
    if rate < 0:
        return "Fee rate must not be negative"
    return None


# ─── Field Table ─────────────────────────────────────────────────────

MONEY_FIELDS: tuple[str, ...] = (
    "today_gmv",
    "today_spend",
    "one_hour_gmv",
    "one_hour_spend",
    "month_gmv",
    "month_spend",
)

REFUND_RATE_FIELDS: tuple[str, ...] = (
    "today_refund_rate",
    "platform_refund_rate_1h",
    "target_refund_rate",
    "month_refund_rate",
    "month_expected_refund_rate",
)

FEE_RATE_FIELDS: tuple[str, ...] = ("target_fee_rate",)


def _checks() -> list[tuple[str, Callable[[str], float | None], FieldValidator]]:
    checks: list[tuple[str, Callable[[str], float | None], FieldValidator]] = []
    checks.extend((name, parse_money, money_error) for name in MONEY_FIELDS)
    checks.extend((name, parse_rate, refund_rate_error) for name in REFUND_RATE_FIELDS)
    checks.extend((name, parse_rate, fee_rate_error) for name in FEE_RATE_FIELDS)
    return checks


# ─── Orchestrator ────────────────────────────────────────────────────


def validate_all(inputs: Inputs) -> list[ValidationFinding]:
    """Run the matching validator for every field and collect findings."""
    findings: list[ValidationFinding] = []

    for field_name, parse, check in _checks():
        text = getattr(inputs, field_name)
        message = check(text, parse(text))
        if message is not None:
            findings.append(
                ValidationFinding(
                    severity=Severity.ERROR,
                    code="INVALID_FIELD",
                    field=field_name,
                    message=message,
                    details={"raw": text},
                )
            )

    return findings
