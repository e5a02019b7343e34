"""
Ad ROI Calculator — FastAPI Server
==================================

JSON API over the metric composer and the scenario store.

Endpoints:
    POST   /metrics                     Compute metrics from raw field text
    GET    /scenarios                   List saved scenarios with quick metrics
    POST   /scenarios                   Save a new scenario
    GET    /scenarios/{id}              Fetch one scenario
    GET    /scenarios/{id}/metrics      Compute metrics for a saved scenario
    DELETE /scenarios/{id}              Delete one scenario
    DELETE /scenarios?confirm=true      Delete every scenario
    GET    /health                      Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from roi_calculator import __version__
from roi_calculator.composer import MetricComposer
from roi_calculator.config import get_settings
from roi_calculator.exceptions import ConfirmationRequiredError, ScenarioNotFoundError
from roi_calculator.models import Inputs, MetricsReport, QuickMetrics, Scenario
from roi_calculator.store import FileBackend, ScenarioStore, quick_metrics

load_dotenv()


# ─── Application Lifespan (load saved scenarios) ────────────────────

_store: ScenarioStore | None = None
_composer = MetricComposer()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store from settings and load persisted scenarios on startup."""
    global _store  # noqa: PLW0603
    settings = get_settings()
    _store = ScenarioStore(FileBackend(settings.storage_dir), key=settings.storage_key)
    _store.load()
    yield
    _store = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="Ad ROI Calculator API",
    description=(
        "Return-on-spend, fee rate, and net return across daily, trailing-hour, "
        "monthly, and target windows, with saved input scenarios."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Request / Response Schemas ─────────────────────────────────────


class SaveScenarioRequest(BaseModel):
    """Request body for POST /scenarios. A blank name gets a default."""

    name: str = Field(default="", max_length=200)
    inputs: Inputs = Field(
        default_factory=Inputs,
        json_schema_extra={
            "example": {"todayGmv": "125000", "todaySpend": "32000", "todayRefundRate": "10%"}
        },
    )


class ScenarioSummary(BaseModel):
    """One row of the scenario list."""

    scenario: Scenario
    quick: QuickMetrics


class ScenarioListResponse(BaseModel):
    count: int
    scenarios: list[ScenarioSummary]


class ClearResponse(BaseModel):
    removed: int


class HealthResponse(BaseModel):
    status: str
    version: str
    scenarios_loaded: int


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_store() -> ScenarioStore:
    if _store is None:
        raise HTTPException(status_code=503, detail="Store not initialised")
    return _store


def _get_scenario(scenario_id: str) -> Scenario:
    try:
        return _get_store().get(scenario_id)
    except ScenarioNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post("/metrics", summary="Compute metrics from raw field text", tags=["Metrics"])
def compute_metrics(inputs: Inputs) -> MetricsReport:
    """Run the composer on raw input text.

    Field errors never fail the request: they come back as findings, and
    the affected metrics carry an `undefined` value with a reason.
    """
    return _composer.compose(inputs)


@app.get("/scenarios", summary="List saved scenarios", tags=["Scenarios"])
def list_scenarios() -> ScenarioListResponse:
    scenarios = _get_store().scenarios
    return ScenarioListResponse(
        count=len(scenarios),
        scenarios=[ScenarioSummary(scenario=s, quick=quick_metrics(s.inputs)) for s in scenarios],
    )


@app.post("/scenarios", status_code=201, summary="Save a scenario", tags=["Scenarios"])
def save_scenario(request: SaveScenarioRequest) -> Scenario:
    return _get_store().add(request.name, request.inputs)


@app.get(
    "/scenarios/{scenario_id}",
    summary="Fetch a saved scenario",
    tags=["Scenarios"],
    responses={404: {"description": "Unknown scenario id"}},
)
def get_scenario(scenario_id: str) -> Scenario:
    return _get_scenario(scenario_id)


@app.get(
    "/scenarios/{scenario_id}/metrics",
    summary="Compute metrics for a saved scenario",
    tags=["Scenarios"],
    responses={404: {"description": "Unknown scenario id"}},
)
def scenario_metrics(scenario_id: str) -> MetricsReport:
    return _composer.compose(_get_scenario(scenario_id).inputs)


@app.delete(
    "/scenarios/{scenario_id}",
    summary="Delete a saved scenario",
    tags=["Scenarios"],
    responses={404: {"description": "Unknown scenario id"}},
)
def delete_scenario(scenario_id: str) -> Scenario:
    try:
        return _get_store().delete(scenario_id)
    except ScenarioNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@app.delete(
    "/scenarios",
    summary="Delete every saved scenario",
    tags=["Scenarios"],
    responses={400: {"description": "Missing confirm=true"}},
)
def clear_scenarios(confirm: bool = False) -> ClearResponse:
    try:
        removed = _get_store().clear(confirm=confirm)
    except ConfirmationRequiredError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return ClearResponse(removed=removed)


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Store not yet initialised"}},
)
def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        scenarios_loaded=len(_get_store().scenarios),
    )
