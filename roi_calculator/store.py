"""
Scenario store — named snapshots of raw inputs, persisted as one JSON blob.

Philosophy: the persisted blob is UNTRUSTED on every read. It may have been
written by an older or newer schema, truncated, or edited by hand.

  - A blob that is missing, undecodable, or not a list loads as [].
  - An entry without a usable id / name / createdAt is dropped on its own;
    its neighbours survive.
  - An entry whose inputs are partly wrong keeps the good fields; bad or
    missing ones become "" (not filled in).
  - A failed write is logged and dropped. The in-memory list stays
    authoritative for the running session; the next successful write wins.

The list is most-recent-first and never holds more than MAX_SCENARIOS entries.
"""

from __future__ import annotations

import json
import logging
import math
import time
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .composer import compose_base, compose_today
from .config import DEFAULT_STORAGE_KEY
from .exceptions import ConfirmationRequiredError, ScenarioNotFoundError
from .formatting import format_calc, format_fixed2, format_percent
from .models import Inputs, QuickMetrics, Scenario

logger = logging.getLogger(__name__)

MAX_SCENARIOS = 100


# ─── Storage Backends ────────────────────────────────────────────────


class StorageBackend(Protocol):
    """Key-value storage for a single serialized blob per key."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...


class FileBackend:
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)


class MemoryBackend:
    """In-process storage; used by tests and short-lived sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self.data.get(key)

    def write(self, key: str, value: str) -> None:
        self.data[key] = value


# ─── Schema Validation ───────────────────────────────────────────────


class _StoredScenario(BaseModel):
    """Envelope check for one persisted entry.

    Identity and timestamp have no safe default, so they are strict: a
    numeric id, a missing name, or a boolean or non-finite createdAt
    rejects the entry.
    """

    model_config = ConfigDict(strict=True)

    id: str
    name: str
    createdAt: Union[int, float]  # noqa: N815  (persisted key)
    inputs: Any = None

    @field_validator("createdAt")
    @classmethod
    def _finite_timestamp(cls, v: Union[int, float]) -> Union[int, float]:
        if not math.isfinite(v):
            raise ValueError("createdAt must be a finite number")
        return v


def normalize_inputs(raw: object) -> Inputs | None:
    """Build a complete Inputs record from untrusted data.

    Returns:
        Inputs with every field present (wrongly-typed or missing fields
        become ""), or None when ``raw`` is not a mapping at all.
    """
    if not isinstance(raw, Mapping):
        return None

    values: dict[str, str] = {}
    for name, info in Inputs.model_fields.items():
        key = info.alias or name
        value = raw.get(key)
        values[key] = value if isinstance(value, str) else ""

    return Inputs.model_validate(values)


def validate_scenario(raw: object) -> Scenario | None:
    """Validate one persisted entry; None means rejected."""
    try:
        envelope = _StoredScenario.model_validate(raw)
    except ValidationError as e:
        logger.debug("Dropping malformed scenario entry: %s", e.errors(include_url=False))
        return None

    inputs = normalize_inputs(envelope.inputs)
    if inputs is None:
        logger.debug("Dropping scenario %r: inputs is not an object", envelope.id)
        return None

    return Scenario(
        id=envelope.id,
        name=envelope.name,
        created_at=envelope.createdAt,
        inputs=inputs,
    )


# ─── Store ───────────────────────────────────────────────────────────


def _new_id() -> str:
    return uuid.uuid4().hex


def _now_ms() -> int:
    return int(time.time() * 1000)


class ScenarioStore:
    """Holds the session's scenario list and mirrors it to a backend.

    Usage:
        store = ScenarioStore(FileBackend("~/.roi_calculator"))
        store.load()
        saved = store.add("Launch day", inputs)
        store.delete(saved.id)
    """

    def __init__(
        self,
        backend: StorageBackend,
        key: str = DEFAULT_STORAGE_KEY,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.backend = backend
        self.key = key
        self._new_id = id_factory or _new_id
        self._now = clock or _now_ms
        self._scenarios: list[Scenario] = []

    @property
    def scenarios(self) -> list[Scenario]:
        """Most-recent-first copy of the in-memory list."""
        return list(self._scenarios)

    # ─── Persistence ─────────────────────────────────────────────────

    def load_all(self) -> list[Scenario]:
        """Read and validate the persisted list. Never raises."""
        try:
            raw = self.backend.read(self.key)
            if not raw:
                return []
            parsed = json.loads(raw)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable scenario blob %r: %s", self.key, e)
            return []

        if not isinstance(parsed, list):
            logger.warning(
                "Ignoring scenario blob %r: expected a list, got %s",
                self.key,
                type(parsed).__name__,
            )
            return []

        scenarios = [s for s in map(validate_scenario, parsed) if s is not None]
        dropped = len(parsed) - len(scenarios)
        if dropped:
            logger.info("Dropped %d malformed scenario(s) from %r", dropped, self.key)
        return scenarios[:MAX_SCENARIOS]

    def save_all(self, scenarios: list[Scenario]) -> None:
        """Write at most MAX_SCENARIOS entries. Write failures are swallowed."""
        payload = [s.model_dump(by_alias=True) for s in scenarios[:MAX_SCENARIOS]]
        try:
            self.backend.write(self.key, json.dumps(payload, ensure_ascii=False))
        except OSError as e:
            logger.warning("Could not persist %d scenario(s): %s", len(payload), e)
            return
        logger.debug("Persisted %d scenario(s) to %r", len(payload), self.key)

    # ─── Session Operations ──────────────────────────────────────────

    def load(self) -> list[Scenario]:
        """Replace the in-memory list with what is persisted."""
        self._scenarios = self.load_all()
        logger.info("Loaded %d scenario(s)", len(self._scenarios))
        return self.scenarios

    def add(self, name: str, inputs: Inputs) -> Scenario:
        """Save a new snapshot at the front of the list.

        A blank name becomes "Scenario N", N being the new list length.
        """
        scenario = Scenario(
            id=self._new_id(),
            name=name.strip() or f"Scenario {len(self._scenarios) + 1}",
            created_at=self._now(),
            inputs=inputs,
        )
        self._scenarios = [scenario, *self._scenarios][:MAX_SCENARIOS]
        self.save_all(self._scenarios)
        return scenario

    def get(self, scenario_id: str) -> Scenario:
        for scenario in self._scenarios:
            if scenario.id == scenario_id:
                return scenario
        raise ScenarioNotFoundError(scenario_id)

    def delete(self, scenario_id: str) -> Scenario:
        scenario = self.get(scenario_id)
        self._scenarios = [s for s in self._scenarios if s.id != scenario_id]
        self.save_all(self._scenarios)
        return scenario

    def clear(self, confirm: bool = False) -> int:
        """Remove every scenario. Requires ``confirm=True``.

        Returns:
            The number of scenarios removed.
        """
        if not confirm:
            raise ConfirmationRequiredError("clear all saved scenarios")
        removed = len(self._scenarios)
        self._scenarios = []
        self.save_all(self._scenarios)
        return removed


# ─── List Summary ────────────────────────────────────────────────────


def quick_metrics(inputs: Inputs) -> QuickMetrics:
    """Today's fee rate and the base-window net return for a scenario list row.

    Uses the same policy functions as the full composer, so the summary and
    the detail view always agree.
    """
    return QuickMetrics(
        fee_rate=format_calc(compose_today(inputs).fee_rate, format_percent),
        net_return=format_calc(compose_base(inputs).net_return, format_fixed2),
    )
