"""
Measurements Router

Endpoints:
- POST /measurements/realtime - Record a live weight reading
- POST /measurements/historical/{cylinder_id} - Import offline samples
- GET /measurements - Stored measurements in a time range
- GET /measurements/latest - Newest real-time measurement
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from cylinder_monitor.models import FuelMeasurement, WeightSample, now_ms
from cylinder_monitor.orchestrators import MonitorOrchestrator
from cylinder_monitor.routers.dependencies import get_orchestrator, unwrap_or_raise

router = APIRouter(prefix="/measurements", tags=["Measurements"])


class WeightReading(BaseModel):
    """Raw weight sample"""

    total_weight_kg: float
    timestamp: Optional[int] = Field(None, description="Epoch ms, defaults to now")


class HistoricalImport(BaseModel):
    samples: List[WeightReading]


class SaveMeasurementResponse(BaseModel):
    measurement_id: Optional[int]
    processed: bool
    reason: str
    removed_outlier_id: Optional[int] = None


class ImportResponse(BaseModel):
    inserted: int


class MeasurementResponse(BaseModel):
    """Fuel measurement model"""

    id: Optional[int]
    cylinder_id: int
    cylinder_name: str
    timestamp: int
    fuel_kilograms: float
    fuel_percentage: float
    total_weight_kg: float
    is_calibrated: bool
    is_historical: bool

    @classmethod
    def from_measurement(cls, measurement: FuelMeasurement) -> "MeasurementResponse":
        return cls(**measurement.to_dict())


@router.post("/realtime", response_model=SaveMeasurementResponse)
async def record_real_time(
    body: WeightReading, orchestrator: MonitorOrchestrator = Depends(get_orchestrator)
):
    """
    Record a live reading for the active cylinder.

    ``processed`` is false when the reading arrived too soon after the
    previous saved one.
    """
    saved = unwrap_or_raise(
        await orchestrator.processor.handle_weight(body.total_weight_kg, body.timestamp)
    )
    return SaveMeasurementResponse(**saved.to_dict())


@router.post("/historical/{cylinder_id}", response_model=ImportResponse)
async def record_historical(
    cylinder_id: int,
    body: HistoricalImport,
    orchestrator: MonitorOrchestrator = Depends(get_orchestrator),
):
    now = now_ms()
    samples = [
        WeightSample(
            total_weight_kg=s.total_weight_kg,
            timestamp=now if s.timestamp is None else s.timestamp,
        )
        for s in body.samples
    ]
    inserted = unwrap_or_raise(await orchestrator.ingestion.record_historical(cylinder_id, samples))
    return ImportResponse(inserted=inserted)


@router.get("", response_model=List[MeasurementResponse])
async def get_measurements(
    start: int = Query(0, ge=0, description="Range start (epoch ms)"),
    end: Optional[int] = Query(None, ge=0, description="Range end (epoch ms), defaults to now"),
    cylinder_id: Optional[int] = Query(None, description="Filter by cylinder"),
    orchestrator: MonitorOrchestrator = Depends(get_orchestrator),
):
    measurements = unwrap_or_raise(
        await orchestrator.ingestion.measurements_between(
            start, now_ms() if end is None else end, cylinder_id
        )
    )
    return [MeasurementResponse.from_measurement(m) for m in measurements]


@router.get("/latest", response_model=Optional[MeasurementResponse])
async def get_latest_measurement(
    cylinder_id: Optional[int] = Query(None, description="Filter by cylinder"),
    orchestrator: MonitorOrchestrator = Depends(get_orchestrator),
):
    latest = unwrap_or_raise(await orchestrator.ingestion.latest_real_time(cylinder_id))
    return MeasurementResponse.from_measurement(latest) if latest else None
