from fastapi import APIRouter

from cellarpilot.schemas.observability import CellarMetricsResponse
from cellarpilot.services.observability import metrics_tracker

router = APIRouter(prefix="/observability", tags=["observability"])


@router.get("/metrics", response_model=CellarMetricsResponse)
def get_metrics() -> CellarMetricsResponse:
    return CellarMetricsResponse(**metrics_tracker.snapshot())
