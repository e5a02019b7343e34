"""
Custom exception hierarchy for the outer surfaces (CLI and HTTP API).

The calculation engine itself never raises: bad input becomes a field-level
message and indeterminate ratios become classified values. These exceptions
exist only for operator actions that cannot be completed, such as asking for
a scenario that does not exist.
"""

from __future__ import annotations


class CalculatorError(Exception):
    """Base exception for all operator-facing failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class ScenarioNotFoundError(CalculatorError):
    """No saved scenario carries the requested id."""

    def __init__(self, scenario_id: str):
        super().__init__(
            "SCENARIO_NOT_FOUND",
            f"No saved scenario with id '{scenario_id}'",
            {"scenario_id": scenario_id},
        )


class ConfirmationRequiredError(CalculatorError):
    """A destructive action was requested without explicit confirmation."""

    def __init__(self, action: str):
        super().__init__(
            "CONFIRMATION_REQUIRED",
            f"Refusing to {action} without explicit confirmation",
            {"action": action},
        )
