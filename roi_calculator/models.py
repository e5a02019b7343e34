"""
Pydantic models for calculator data — strict typing as our first line of defense.

Raw operator input is kept as text (``Inputs``) so a reloaded scenario shows
exactly what was typed. Everything computed from it is typed: a division is a
``CalcValue`` with exactly three cases, and each reporting window is a fixed
set of named metrics.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ─── Severity Levels ────────────────────────────────────────────────


class Severity(str, Enum):
    """Severity of a validation finding."""

    ERROR = "ERROR"  # Field unusable, treated as absent
    WARNING = "WARNING"  # Input accepted but probably not what was meant
    INFO = "INFO"  # Informational observation


# ─── Validation Finding ─────────────────────────────────────────────


class ValidationFinding(BaseModel):
    """A single finding with severity, machine-readable code, and details."""

    severity: Severity
    code: str  # Machine-readable, e.g. "INVALID_FIELD"
    field: str  # Which input field this relates to
    message: str  # Human-readable explanation
    details: dict = Field(default_factory=dict)


# ─── Tri-State Division Result ──────────────────────────────────────


class Value(BaseModel):
    """A well-defined quotient."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["value"] = "value"
    value: float


class Infinite(BaseModel):
    """Non-zero numerator over a zero denominator."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["infinite"] = "infinite"
    reason: str


class Undefined(BaseModel):
    """An operand is missing, or both operands are zero."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["undefined"] = "undefined"
    reason: str


CalcValue = Annotated[Union[Value, Infinite, Undefined], Field(discriminator="kind")]


# ─── Raw Inputs ─────────────────────────────────────────────────────


class Inputs(BaseModel):
    """Every field exactly as the operator typed it.

    Attribute names are snake_case; the aliases are the persisted schema and
    must not change without bumping the storage key.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    today_gmv: str = Field(default="", alias="todayGmv")
    today_spend: str = Field(default="", alias="todaySpend")
    today_refund_rate: str = Field(default="", alias="todayRefundRate")
    platform_refund_rate_1h: str = Field(default="", alias="platformRefundRate1h")
    one_hour_gmv: str = Field(default="", alias="oneHourGmv")
    one_hour_spend: str = Field(default="", alias="oneHourSpend")
    target_fee_rate: str = Field(default="", alias="targetFeeRate")
    target_refund_rate: str = Field(default="", alias="targetRefundRate")
    month_gmv: str = Field(default="", alias="monthGmv")
    month_spend: str = Field(default="", alias="monthSpend")
    month_refund_rate: str = Field(default="", alias="monthRefundRate")
    month_expected_refund_rate: str = Field(default="", alias="monthExpectedRefundRate")


# ─── Saved Scenario ─────────────────────────────────────────────────


class Scenario(BaseModel):
    """A named, timestamped snapshot of every input field."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    created_at: Union[int, float] = Field(alias="createdAt")  # epoch milliseconds
    inputs: Inputs

    @property
    def trailing_hour_filled(self) -> bool:
        """True when either trailing-hour amount was entered."""
        return bool(self.inputs.one_hour_gmv.strip() or self.inputs.one_hour_spend.strip())

    @property
    def forecast_filled(self) -> bool:
        return bool(self.inputs.month_expected_refund_rate.strip())


# ─── Metric Models ──────────────────────────────────────────────────


class BaseMode(str, Enum):
    """Which figures the platform-side (base) window was computed from."""

    EXACT = "exact"  # Trailing-hour gmv, spend, and refund rate
    ESTIMATED = "estimated"  # Daily gmv/spend with the trailing-hour refund rate


class WindowMetrics(BaseModel):
    """The four named metrics every reporting window produces."""

    gross_return: CalcValue
    net_amount: Optional[float] = None
    fee_rate: CalcValue
    net_return: CalcValue


class BaseWindowMetrics(WindowMetrics):
    """Platform-side window metrics plus the selection that produced them."""

    mode: BaseMode
    mode_label: str


class TargetMetrics(BaseModel):
    """What-if returns implied by a target fee rate and refund rate."""

    target_net_return: CalcValue
    target_gross_return: CalcValue


class MetricsReport(BaseModel):
    """The final output of the metric composer."""

    is_valid: bool
    today: WindowMetrics
    base: BaseWindowMetrics
    month: WindowMetrics
    month_forecast: WindowMetrics
    target: TargetMetrics
    refund_rate_delta: Optional[float] = None  # today − trailing hour, as a fraction
    findings: list[ValidationFinding] = Field(default_factory=list)
    assumed_zero: list[str] = Field(default_factory=list)  # blank rates computed as 0%


# ─── Display Models ─────────────────────────────────────────────────


class Display(BaseModel):
    """Rendered text plus an optional explanatory note."""

    text: str
    note: Optional[str] = None


class QuickMetrics(BaseModel):
    """Summary shown next to each saved scenario in a list."""

    fee_rate: Display
    net_return: Display
