# carbon_coach/api/v1/endpoints/footprints.py
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from typing import List
from carbon_coach.api.deps import get_footprint_store, get_owner_id
from carbon_coach.api.v1.schemas.footprint import (
    FootprintInput,
    FootprintRecord,
    FootprintResult,
    ProjectionOutput,
)
from carbon_coach.db.database import FootprintStore
from carbon_coach.services.footprint_calculator import estimate_footprint
from carbon_coach.services.projection import (
    DEFAULT_BASELINE,
    add_prediction,
    compare_totals,
    project_savings,
)
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


def _require_store(store: FootprintStore) -> FootprintStore:
    if not store.configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Footprint history storage is not configured.",
        )
    return store


@router.post(
    "/estimate",
    response_model=FootprintResult,
    summary="Estimate an annual footprint without saving it",
)
async def estimate(footprint_input: FootprintInput = Body(...)) -> FootprintResult:
    return estimate_footprint(footprint_input)


# Endpoints con FootprintStore en def síncrono: psycopg bloquea y FastAPI los ejecuta en su threadpool
@router.post(
    "/",
    response_model=FootprintRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Estimate and append a footprint to the user's history",
)
def create_footprint(
    footprint_input: FootprintInput = Body(...),
    owner_id: str = Depends(get_owner_id),
    store: FootprintStore = Depends(get_footprint_store),
) -> FootprintRecord:
    _require_store(store)
    result = estimate_footprint(footprint_input)
    logger.info(f"Footprint estimated for {owner_id}: total {result.total:.2f} t CO2e/year.")

    record = store.add_footprint(owner_id, result, footprint_input)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to save footprint data. Please try again later.",
        )
    return record


def _load_history(store: FootprintStore, owner_id: str) -> List[FootprintRecord]:
    history = store.list_footprints(owner_id)
    if history is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to load footprint history. Please try again later.",
        )
    return history


@router.get(
    "/",
    response_model=List[FootprintRecord],
    summary="List the user's footprint history, oldest first",
)
def list_footprints(
    owner_id: str = Depends(get_owner_id),
    store: FootprintStore = Depends(get_footprint_store),
) -> List[FootprintRecord]:
    return _load_history(_require_store(store), owner_id)


@router.get(
    "/projection",
    response_model=ProjectionOutput,
    summary="Project the next 12 months from the latest footprint",
)
def projection(
    savings: float = Query(0.0, ge=0, description="Ahorro anual total de las estrategias adoptadas (t CO2e)."),
    adoption_months: int = Query(6, ge=1, le=12),
    stretch: bool = Query(False),
    predict: bool = Query(True),
    owner_id: str = Depends(get_owner_id),
    store: FootprintStore = Depends(get_footprint_store),
) -> ProjectionOutput:
    history = _load_history(_require_store(store), owner_id)
    totals_newest_first = [entry.total for entry in reversed(history)]

    baseline = totals_newest_first[0] if totals_newest_first else DEFAULT_BASELINE
    points = project_savings(baseline, savings, adoption_months, stretch)
    if predict:
        points = add_prediction(points, totals_newest_first, baseline)

    comparison = compare_totals(
        totals_newest_first[0] if totals_newest_first else None,
        totals_newest_first[1] if len(totals_newest_first) > 1 else None,
    )
    return ProjectionOutput(
        baseline=baseline,
        totalSavings=savings,
        projectedEnd=points[-1].withStrategies,
        comparison=comparison,
        points=points,
    )
