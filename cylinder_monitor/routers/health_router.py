"""Health check endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from cylinder_monitor.orchestrators import MonitorOrchestrator
from cylinder_monitor.routers.dependencies import get_orchestrator

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    database: str
    active_cylinder_id: Optional[int] = None
    discovery_scanning: bool = False


@router.get("/health", response_model=HealthResponse)
async def health_check(orchestrator: MonitorOrchestrator = Depends(get_orchestrator)):
    status = await orchestrator.status()
    return HealthResponse(**status.to_dict())
