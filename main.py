#!/usr/bin/env python3
"""
Ad ROI Calculator — Command Line
================================

Compute return-on-spend metrics from raw field text, and manage saved scenarios.

Usage:
    python main.py calc --today-gmv 125000 --today-spend 32000 --today-refund-rate 10%
    python main.py save "Launch day" --today-gmv 125000 --today-spend 32000
    python main.py list
    python main.py show <scenario-id>
    python main.py delete <scenario-id>
    python main.py clear --yes

Saved scenarios live in $ROI_CALC_STORAGE_DIR (default ~/.roi_calculator).
"""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from roi_calculator.composer import MetricComposer
from roi_calculator.config import get_settings
from roi_calculator.exceptions import CalculatorError
from roi_calculator.formatting import (
    format_amount,
    format_calc,
    format_delta,
    format_fixed2,
    format_percent,
    format_timestamp,
)
from roi_calculator.models import Display, Inputs, MetricsReport, Severity, WindowMetrics
from roi_calculator.policy import RefundSource, with_target_refund_from
from roi_calculator.store import FileBackend, ScenarioStore, quick_metrics

load_dotenv()


# ─── ANSI Color Constants ───────────────────────────────────────────

_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 72


# ─── Pretty Printer Helpers ─────────────────────────────────────────


def _print_metric(label: str, display: Display) -> None:
    """Print one metric line, with its note dimmed underneath."""
    print(f"  {label:<28}{_BOLD}{display.text}{_RESET}")
    if display.note:
        print(f"  {'':<28}{_DIM}{display.note}{_RESET}")


def _print_window(title: str, window: WindowMetrics, missing_note: str) -> None:
    print(f"\n  {_CYAN}{_BOLD}{title}{_RESET}")
    _print_metric("Gross return", format_calc(window.gross_return, format_fixed2))
    _print_metric("Fee rate", format_calc(window.fee_rate, format_percent))
    _print_metric("Net return", format_calc(window.net_return, format_fixed2))
    _print_metric("Net amount", format_amount(window.net_amount, missing_note))


def _print_findings(report: MetricsReport) -> None:
    """Print field errors and warnings, grouped by severity."""
    groups = (
        (Severity.ERROR, _RED, "FIELD ERRORS"),
        (Severity.WARNING, _YELLOW, "WARNINGS"),
    )
    for severity, color, label in groups:
        findings = [f for f in report.findings if f.severity == severity]
        if not findings:
            continue
        print(f"\n  {color}{_BOLD}{label} ({len(findings)}){_RESET}")
        for f in findings:
            print(f"    {color}[{f.field}]{_RESET} {f.message}")


# ─── Pretty Printer ─────────────────────────────────────────────────


def print_report(report: MetricsReport) -> int:
    """Pretty-print the metrics report with ANSI color codes.

    Returns:
        0 if every field was usable, 1 if any field had an error.
    """
    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  AD ROI METRICS{_RESET}")
    print(f"{'=' * _WIDTH}")

    _print_window("TODAY (cumulative)", report.today, "Enter gmv and refund rate")
    _print_window("PLATFORM (base window)", report.base, "Enter gmv and refund rate")
    print(f"  {_DIM}{report.base.mode_label}{_RESET}")
    if report.refund_rate_delta is None:
        delta_text = "—"
    else:
        delta_text = format_delta(report.refund_rate_delta)
    print(f"  {'Refund delta (today − 1h)':<28}{_BOLD}{delta_text}{_RESET}")

    _print_window("MONTH (cumulative)", report.month, "Enter this month's gmv and refund rate")
    _print_window(
        "MONTH (forecast)",
        report.month_forecast,
        "Enter this month's gmv and expected final refund rate",
    )

    print(f"\n  {_CYAN}{_BOLD}TARGET{_RESET}")
    _print_metric("Target net return", format_calc(report.target.target_net_return, format_fixed2))
    _print_metric(
        "Target gross return", format_calc(report.target.target_gross_return, format_fixed2)
    )

    if report.assumed_zero:
        print(f"\n  {_DIM}Blank refund rates computed as 0%: {', '.join(report.assumed_zero)}{_RESET}")

    _print_findings(report)

    print(f"\n{'=' * _WIDTH}")
    if report.is_valid:
        print(f"  {_GREEN}{_BOLD}ALL FIELDS USABLE{_RESET}")
    else:
        errors = sum(1 for f in report.findings if f.severity == Severity.ERROR)
        print(f"  {_RED}{_BOLD}{errors} field(s) ignored because of errors{_RESET}")
    print(f"{'=' * _WIDTH}\n")

    return 0 if report.is_valid else 1


# ─── Argument Parsing ────────────────────────────────────────────────


def _add_field_options(parser: argparse.ArgumentParser) -> None:
    """One --option per input field, e.g. --today-gmv for today_gmv."""
    for name in Inputs.model_fields:
        parser.add_argument(f"--{name.replace('_', '-')}", dest=name, default="")


def _inputs_from_args(args: argparse.Namespace) -> Inputs:
    return Inputs(**{name: getattr(args, name) for name in Inputs.model_fields})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ad ROI calculator")
    sub = parser.add_subparsers(dest="command", required=True)

    calc = sub.add_parser("calc", help="compute metrics from field values")
    _add_field_options(calc)
    calc.add_argument(
        "--target-refund-from",
        choices=[s.value for s in RefundSource],
        help="copy today's or the trailing-hour refund rate into the target refund rate",
    )

    save = sub.add_parser("save", help="save field values as a named scenario")
    save.add_argument("name", nargs="?", default="")
    _add_field_options(save)

    sub.add_parser("list", help="list saved scenarios")

    show = sub.add_parser("show", help="compute metrics for a saved scenario")
    show.add_argument("scenario_id")

    delete = sub.add_parser("delete", help="delete a saved scenario")
    delete.add_argument("scenario_id")

    clear = sub.add_parser("clear", help="delete every saved scenario")
    clear.add_argument("--yes", action="store_true", help="confirm clearing all scenarios")

    return parser


# ─── Commands ────────────────────────────────────────────────────────


def _list(store: ScenarioStore) -> int:
    scenarios = store.scenarios
    if not scenarios:
        print("  No saved scenarios.")
        return 0
    for s in scenarios:
        quick = quick_metrics(s.inputs)
        print(
            f"  {_DIM}{s.id}{_RESET}  {_BOLD}{s.name}{_RESET}  "
            f"{_DIM}{format_timestamp(s.created_at)}{_RESET}  "
            f"fee {quick.fee_rate.text}  net return {quick.net_return.text}"
        )
    return 0


def run(args: argparse.Namespace, store: ScenarioStore) -> int:
    """Dispatch a parsed command against a loaded store."""
    composer = MetricComposer()

    if args.command == "calc":
        inputs = _inputs_from_args(args)
        if args.target_refund_from:
            inputs = with_target_refund_from(inputs, RefundSource(args.target_refund_from))
        return print_report(composer.compose(inputs))

    if args.command == "save":
        scenario = store.add(args.name, _inputs_from_args(args))
        print(f"  Saved '{scenario.name}' ({scenario.id})")
        return 0

    if args.command == "list":
        return _list(store)

    if args.command == "show":
        scenario = store.get(args.scenario_id)
        print(f"\n  {_BOLD}{scenario.name}{_RESET}  {_DIM}{format_timestamp(scenario.created_at)}{_RESET}")
        if scenario.trailing_hour_filled:
            print(f"  {_DIM}Includes trailing-hour figures{_RESET}")
        if scenario.forecast_filled:
            print(f"  {_DIM}Includes an expected final refund rate{_RESET}")
        return print_report(composer.compose(scenario.inputs))

    if args.command == "delete":
        scenario = store.delete(args.scenario_id)
        print(f"  Deleted '{scenario.name}'")
        return 0

    if args.command == "clear":
        removed = store.clear(confirm=args.yes)
        print(f"  Cleared {removed} scenario(s)")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


# ─── Main ────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, load saved scenarios, run the command, and exit."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    args = build_parser().parse_args(argv)
    store = ScenarioStore(FileBackend(settings.storage_dir), key=settings.storage_key)
    store.load()

    try:
        exit_code = run(args, store)
    except CalculatorError as e:
        print(f"  {_RED}[{e.code}]{_RESET} {e}", file=sys.stderr)
        exit_code = 2
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
