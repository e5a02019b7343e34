"""
Metric composer — turns one set of raw inputs into every displayed metric.

Flow:
  ┌────────────┐
  │ Raw Inputs │   text exactly as typed
  └─────┬──────┘
        │
  ┌─────▼──────┐
  │ Validators │   ← field-level findings
  └─────┬──────┘
        │
  ┌─────▼──────┐
  │   Policy   │   ← invalid → absent, blank rate → 0, base window selection
  └─────┬──────┘
        │
  ┌─────▼──────┐
  │   divide   │   ← value / infinite / undefined, with reasons
  └─────┬──────┘
        │
  ┌─────▼──────┐
  │   Report   │   ← today, base, month, forecast, target, delta
  └────────────┘

Design principles:
  - Every ratio is one divide() call; nothing here divides directly.
  - The composer never raises. Abnormal input becomes an Undefined or
    Infinite metric carrying a reason, plus a finding on the offending field.
  - The monthly forecast never falls back to the realized refund rate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .arithmetic import DivisionReasons, divide, net_amount
from .models import (
    BaseMode,
    BaseWindowMetrics,
    Inputs,
    MetricsReport,
    Severity,
    TargetMetrics,
    ValidationFinding,
    WindowMetrics,
)
from .parsing import is_blank
from .policy import select_base_window, usable_amount, usable_rate
from .validators import fee_rate_error, validate_all

logger = logging.getLogger(__name__)

_SPEND_ZERO = "Spend is 0"
_NET_ZERO = "Net amount is 0"
_GROSS_BOTH_ZERO = "Gmv and spend are both 0 (undefined)"
_NET_BOTH_ZERO = "Net amount and spend are both 0 (undefined)"

# Refund-rate fields whose blank value is computed as 0%
_DEFAULTED_RATE_FIELDS: tuple[str, ...] = (
    "today_refund_rate",
    "platform_refund_rate_1h",
    "target_refund_rate",
    "month_refund_rate",
)


# ─── Reason Sets ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class WindowReasons:
    """Division reasons for the three ratios of one window."""

    gross_return: DivisionReasons
    fee_rate: DivisionReasons
    net_return: DivisionReasons


def _window_reasons(missing_gross: str, missing_net: str) -> WindowReasons:
    return WindowReasons(
        gross_return=DivisionReasons(missing_gross, _SPEND_ZERO, _GROSS_BOTH_ZERO),
        fee_rate=DivisionReasons(missing_net, _NET_ZERO, _NET_BOTH_ZERO),
        net_return=DivisionReasons(missing_net, _SPEND_ZERO, _NET_BOTH_ZERO),
    )


TODAY_REASONS = _window_reasons(
    "Enter gmv and ad spend",
    "Enter gmv, ad spend and refund rate",
)
BASE_REASONS = _window_reasons(
    "Enter gmv and ad spend",
    "Enter gmv and ad spend",
)
MONTH_REASONS = _window_reasons(
    "Enter this month's gmv and ad spend",
    "Enter this month's gmv, ad spend and refund rate",
)
FORECAST_REASONS = _window_reasons(
    "Enter this month's gmv, ad spend and expected final refund rate",
    "Enter this month's gmv, ad spend and expected final refund rate",
)


# ─── Window Composition ──────────────────────────────────────────────


def compose_window(
    gross: float | None,
    spend: float | None,
    refund_rate: float | None,
    reasons: WindowReasons,
) -> WindowMetrics:
    """Compute gross return, net amount, fee rate, and net return."""
    net = net_amount(gross, refund_rate)
    return WindowMetrics(
        gross_return=divide(gross, spend, reasons.gross_return),
        net_amount=net,
        fee_rate=divide(spend, net, reasons.fee_rate),
        net_return=divide(net, spend, reasons.net_return),
    )


def compose_today(inputs: Inputs) -> WindowMetrics:
    return compose_window(
        usable_amount(inputs.today_gmv),
        usable_amount(inputs.today_spend),
        usable_rate(inputs.today_refund_rate),
        TODAY_REASONS,
    )


def compose_base(inputs: Inputs) -> BaseWindowMetrics:
    """Platform-side window: exact trailing hour, or today's figures as an estimate."""
    window = select_base_window(inputs)
    metrics = compose_window(window.gmv, window.spend, window.refund_rate, BASE_REASONS)
    return BaseWindowMetrics(
        **metrics.model_dump(),
        mode=window.mode,
        mode_label=window.label,
    )


def compose_month(inputs: Inputs) -> WindowMetrics:
    return compose_window(
        usable_amount(inputs.month_gmv),
        usable_amount(inputs.month_spend),
        usable_rate(inputs.month_refund_rate),
        MONTH_REASONS,
    )


def compose_month_forecast(inputs: Inputs) -> WindowMetrics:
    """Month-end projection using the expected final refund rate.

    A blank or invalid expected rate leaves every forecast metric undefined;
    the realized monthly rate is never substituted.
    """
    expected = usable_rate(inputs.month_expected_refund_rate, default_blank=None)
    gross = None if expected is None else usable_amount(inputs.month_gmv)
    return compose_window(
        gross,
        usable_amount(inputs.month_spend),
        expected,
        FORECAST_REASONS,
    )


def compose_target(inputs: Inputs) -> TargetMetrics:
    """Returns implied by a target fee rate (spend / net amount)."""
    fee = usable_rate(inputs.target_fee_rate, fee_rate_error, default_blank=None)
    refund = usable_rate(inputs.target_refund_rate)

    gross_denominator = None if fee is None or refund is None else fee * (1 - refund)

    return TargetMetrics(
        target_net_return=divide(
            1.0,
            fee,
            DivisionReasons("Enter a target fee rate", "Target fee rate is 0%"),
        ),
        target_gross_return=divide(
            1.0,
            gross_denominator,
            DivisionReasons(
                "Enter a target fee rate and refund rate",
                "Target fee rate is 0% or refund rate is 100%",
            ),
        ),
    )


def refund_rate_delta(inputs: Inputs) -> float | None:
    """Today's refund rate minus the trailing-hour one, or None if either is unusable."""
    today = usable_rate(inputs.today_refund_rate)
    hour = usable_rate(inputs.platform_refund_rate_1h)
    if today is None or hour is None:
        return None
    return today - hour


# ─── Composer ────────────────────────────────────────────────────────


class MetricComposer:
    """Orchestrates validation, policy, and arithmetic for every window.

    Usage:
        composer = MetricComposer()
        report = composer.compose(inputs)
        print(report.today.fee_rate)
    """

    def compose(self, inputs: Inputs) -> MetricsReport:
        """Build the full metrics report. Never raises."""
        findings = validate_all(inputs)
        base = compose_base(inputs)
        findings.extend(self._check_trailing_hour(inputs, base.mode))

        has_errors = any(f.severity == Severity.ERROR for f in findings)
        logger.debug(
            "Composed metrics (base mode=%s, %d finding(s))", base.mode.value, len(findings)
        )

        return MetricsReport(
            is_valid=not has_errors,
            today=compose_today(inputs),
            base=base,
            month=compose_month(inputs),
            month_forecast=compose_month_forecast(inputs),
            target=compose_target(inputs),
            refund_rate_delta=refund_rate_delta(inputs),
            findings=findings,
            assumed_zero=[
                name for name in _DEFAULTED_RATE_FIELDS if is_blank(getattr(inputs, name))
            ],
        )

    # ─── Cross-Field Checks ──────────────────────────────────────────

    def _check_trailing_hour(
        self, inputs: Inputs, mode: BaseMode
    ) -> list[ValidationFinding]:
        """Warn when trailing-hour figures were entered but cannot be used.

        Exact mode needs BOTH gmv and spend; one of them alone is ignored and
        the estimate is shown instead.
        """
        if mode is BaseMode.EXACT:
            return []
        if is_blank(inputs.one_hour_gmv) and is_blank(inputs.one_hour_spend):
            return []

        return [
            ValidationFinding(
                severity=Severity.WARNING,
                code="TRAILING_HOUR_INCOMPLETE",
                field="one_hour_spend" if is_blank(inputs.one_hour_spend) else "one_hour_gmv",
                message=(
                    "Trailing-hour exact mode needs both a valid gmv and a valid "
                    "ad spend; showing the daily estimate instead."
                ),
                details={
                    "one_hour_gmv": inputs.one_hour_gmv,
                    "one_hour_spend": inputs.one_hour_spend,
                },
            )
        ]
