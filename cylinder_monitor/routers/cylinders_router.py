"""
Cylinders Router

Endpoints:
- GET /cylinders - All cylinders, newest first
- POST /cylinders - Register a cylinder
- GET /cylinders/active - Currently active cylinder
- GET /cylinders/{cylinder_id} - One cylinder
- POST /cylinders/{cylinder_id}/activate - Make a cylinder the active one
- DELETE /cylinders/inactive - Delete inactive cylinders and their history
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from cylinder_monitor.models import Cylinder
from cylinder_monitor.orchestrators import MonitorOrchestrator
from cylinder_monitor.routers.dependencies import get_orchestrator, unwrap_or_raise

router = APIRouter(prefix="/cylinders", tags=["Cylinders"])


class CylinderCreate(BaseModel):
    """New cylinder request"""

    name: str
    tare_kg: float = Field(description="Empty cylinder weight in kg")
    capacity_kg: float = Field(description="Fuel capacity in kg")
    make_active: bool = False


class CylinderResponse(BaseModel):
    """Cylinder model"""

    id: int
    name: str
    tare_kg: float
    capacity_kg: float
    is_active: bool
    created_at: int

    @classmethod
    def from_cylinder(cls, cylinder: Cylinder) -> "CylinderResponse":
        return cls(**cylinder.to_dict())


class CylinderCreated(BaseModel):
    id: int


class DeletedCount(BaseModel):
    deleted: int


@router.get("", response_model=List[CylinderResponse])
async def list_cylinders(orchestrator: MonitorOrchestrator = Depends(get_orchestrator)):
    cylinders = unwrap_or_raise(await orchestrator.registry.list_cylinders())
    return [CylinderResponse.from_cylinder(c) for c in cylinders]


@router.post("", response_model=CylinderCreated, status_code=status.HTTP_201_CREATED)
async def add_cylinder(
    body: CylinderCreate, orchestrator: MonitorOrchestrator = Depends(get_orchestrator)
):
    """
    Register a cylinder.

    Name must not be blank, tare must be >= 0 and capacity > 0.
    """
    cylinder_id = unwrap_or_raise(
        await orchestrator.registry.add(
            body.name, body.tare_kg, body.capacity_kg, make_active=body.make_active
        )
    )
    return CylinderCreated(id=cylinder_id)


@router.get("/active", response_model=Optional[CylinderResponse])
async def get_active_cylinder(orchestrator: MonitorOrchestrator = Depends(get_orchestrator)):
    active = unwrap_or_raise(await orchestrator.registry.get_active())
    return CylinderResponse.from_cylinder(active) if active else None


@router.delete("/inactive", response_model=DeletedCount)
async def delete_inactive_cylinders(
    orchestrator: MonitorOrchestrator = Depends(get_orchestrator),
):
    deleted = unwrap_or_raise(await orchestrator.registry.delete_inactive())
    return DeletedCount(deleted=deleted)


@router.get("/{cylinder_id}", response_model=CylinderResponse)
async def get_cylinder(
    cylinder_id: int, orchestrator: MonitorOrchestrator = Depends(get_orchestrator)
):
    return CylinderResponse.from_cylinder(
        unwrap_or_raise(await orchestrator.registry.get_cylinder(cylinder_id))
    )


@router.post("/{cylinder_id}/activate", response_model=CylinderResponse)
async def activate_cylinder(
    cylinder_id: int, orchestrator: MonitorOrchestrator = Depends(get_orchestrator)
):
    return CylinderResponse.from_cylinder(
        unwrap_or_raise(await orchestrator.registry.set_active(cylinder_id))
    )
