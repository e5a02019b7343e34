"""
Deterministic parsing of free-form amount and percentage text.

Philosophy: It's better to parse nothing than to parse wrong data.
            Every function returns None for blank OR unparseable text; the
            caller tells the two apart by looking at the raw text.

Rate convention (kept deliberately, including its ambiguity at exactly 1):
    "10%"  → 0.10      trailing percent sign divides by 100
    "10"   → 0.10      bare number above 1 is read as a percentage
    "0.1"  → 0.10      bare number at or below 1 is already a fraction
    "1"    → 1.00      i.e. 100%, not 1%
"""

from __future__ import annotations

import math
import re

# Plain decimal literal: optional sign, digits with optional fraction, optional exponent.
# Anything else ("1_000", "0x10", "inf", "nan", "12abc") is rejected.
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def is_blank(text: str) -> bool:
    """True when the field holds nothing but whitespace."""
    return not text.strip()


def _to_number(text: str) -> float | None:
    """Convert stripped, separator-free text to a finite float, or None."""
    cleaned = text.strip().replace(",", "")
    if not _NUMBER_RE.match(cleaned):
        return None
    value = float(cleaned)
    return value if math.isfinite(value) else None


def parse_money(text: str) -> float | None:
    """Parse an amount such as ``"125,000"`` or ``"32000.50"``.

    Returns:
        The amount as a float, or None for blank or unparseable text.
        Negative amounts parse successfully; rejecting them is the validator's job.
    """
    if is_blank(text):
        return None
    return _to_number(text)


def parse_rate(text: str) -> float | None:
    """Parse a percentage or fraction into a fraction.

    Args:
        text: e.g. "10%", "10", "0.1", "12.5 %"

    Returns:
        The rate as a fraction (0.1 for ten percent), or None for blank or
        unparseable text. Values above 1 are allowed here; refund-rate
        validation caps them, fee-rate validation does not.
    """
    s = text.strip()
    if not s:
        return None

    has_percent = s.endswith("%")
    raw = s[:-1] if has_percent else s
    n = _to_number(raw)
    if n is None:
        return None

    if has_percent:
        return n / 100
    if n <= 1:
        return n
    return n / 100
