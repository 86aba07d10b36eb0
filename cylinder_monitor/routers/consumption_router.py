"""
Consumption Router

Endpoints:
- GET /consumption/summary - Refill-aware total and daily chart
- GET /consumption/chart - Daily consumption series only
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from cylinder_monitor.orchestrators import MonitorOrchestrator
from cylinder_monitor.routers.dependencies import get_orchestrator, unwrap_or_raise
from cylinder_monitor.services import ConsumptionSummary

router = APIRouter(prefix="/consumption", tags=["Consumption"])

Period = Literal["day", "week", "month", "all"]


class ChartPoint(BaseModel):
    day: str
    kilograms: float


class SummaryResponse(BaseModel):
    """Consumption summary model"""

    total_consumed_kg: float
    measurement_count: int
    chart: List[ChartPoint]
    start: Optional[int] = None
    end: Optional[int] = None


async def _summary(
    orchestrator: MonitorOrchestrator,
    period: Optional[str],
    start: Optional[int],
    end: Optional[int],
    cylinder_id: Optional[int],
) -> ConsumptionSummary:
    if period is not None:
        result = await orchestrator.history.period_summary(period, cylinder_id)
    else:
        result = await orchestrator.history.summary(start, end, cylinder_id)
    return unwrap_or_raise(result)


@router.get("/summary", response_model=SummaryResponse)
async def get_consumption_summary(
    period: Optional[Period] = Query(None, description="Trailing window; overrides start/end"),
    start: Optional[int] = Query(None, ge=0, description="Range start (epoch ms)"),
    end: Optional[int] = Query(None, ge=0, description="Range end (epoch ms)"),
    cylinder_id: Optional[int] = Query(None, description="Filter by cylinder"),
    orchestrator: MonitorOrchestrator = Depends(get_orchestrator),
):
    """
    Total consumption for a window.

    Refills never count as negative consumption; every drop between
    consecutive readings of the same cylinder is summed.
    """
    summary = await _summary(orchestrator, period, start, end, cylinder_id)
    return SummaryResponse(**summary.to_dict())


@router.get("/chart", response_model=List[ChartPoint])
async def get_consumption_chart(
    period: Optional[Period] = Query(None, description="Trailing window; overrides start/end"),
    start: Optional[int] = Query(None, ge=0, description="Range start (epoch ms)"),
    end: Optional[int] = Query(None, ge=0, description="Range end (epoch ms)"),
    cylinder_id: Optional[int] = Query(None, description="Filter by cylinder"),
    orchestrator: MonitorOrchestrator = Depends(get_orchestrator),
):
    summary = await _summary(orchestrator, period, start, end, cylinder_id)
    return [ChartPoint(**point.to_dict()) for point in summary.chart]
