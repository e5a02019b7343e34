"""
Display formatting for metrics.

format_calc() is the contract every front-end relies on:
    Value     → formatted number, no note
    Infinite  → "∞" with the reason as a note
    Undefined → "—" with the reason as a note
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, assert_never

from .models import CalcValue, Display, Infinite, Undefined, Value

INFINITE_MARKER = "∞"
PLACEHOLDER = "—"


def format_calc(value: CalcValue, fmt: Callable[[float], str]) -> Display:
    """Render a classified division result."""
    if isinstance(value, Value):
        return Display(text=fmt(value.value))
    if isinstance(value, Infinite):
        return Display(text=INFINITE_MARKER, note=value.reason)
    if isinstance(value, Undefined):
        return Display(text=PLACEHOLDER, note=value.reason)
    assert_never(value)


def format_amount(value: float | None, missing_note: str) -> Display:
    """Render an optional amount (e.g. net amount) with a note when absent."""
    if value is None:
        return Display(text=PLACEHOLDER, note=missing_note)
    return Display(text=format_money(value))


# ─── Number Formatters ───────────────────────────────────────────────


def format_money(n: float) -> str:
    """Grouped, up to two decimals: 125000 → "125,000", 1234.5 → "1,234.5"."""
    text = f"{n:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_fixed2(n: float) -> str:
    return f"{n:,.2f}"


def format_percent(rate: float) -> str:
    """Fraction to percent: 0.256 → "25.60%"."""
    return f"{rate * 100:,.2f}%"


def format_delta(delta: float) -> str:
    """Signed percentage-point delta: 0.02 → "+2.00%", -0.015 → "-1.50%"."""
    sign = "+" if delta >= 0 else ""
    return f"{sign}{delta * 100:,.2f}%"


def format_timestamp(created_at_ms: float) -> str:
    """Short local label for a scenario timestamp: "MM/DD HH:MM".

    Timestamps outside the platform's date range render as PLACEHOLDER.
    """
    try:
        return datetime.fromtimestamp(created_at_ms / 1000).strftime("%m/%d %H:%M")
    except (ValueError, OverflowError, OSError):
        return PLACEHOLDER
