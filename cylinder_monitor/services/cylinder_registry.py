"""
Cylinder Registry - Owner of the single-active-cylinder invariant

Activation is one storage transaction executed under a registry-scoped lock,
and the committed result is published on the ``active_cylinder`` signal so
readers never see the zero-active state in between.
"""

import asyncio
import logging
from typing import List, Optional

from cylinder_monitor.errors import (
    MonitorError,
    NoActiveCylinderError,
    NotFoundError,
    OperationResult,
    ValidationError,
)
from cylinder_monitor.models import Cylinder
from cylinder_monitor.repositories.cylinder_repository import CylinderRepository
from cylinder_monitor.state_signal import StateSignal

logger = logging.getLogger(__name__)


class CylinderRegistry:
    """
    Registry of gas cylinders.

    Every public operation returns an OperationResult; ``find_active`` is the
    raising variant used by the other services.
    """

    def __init__(self, cylinder_repo: CylinderRepository):
        """
        Initialize CylinderRegistry.

        Args:
            cylinder_repo: CylinderRepository instance
        """
        self.cylinder_repo = cylinder_repo
        self.active_cylinder: StateSignal[Cylinder] = StateSignal()
        self._lock = asyncio.Lock()
        logger.info("CylinderRegistry initialized")

    async def refresh(self) -> OperationResult[Optional[Cylinder]]:
        """Reload the active cylinder from storage into the signal."""
        try:
            async with self._lock:
                active = await self.cylinder_repo.get_active()
                self.active_cylinder.set(active)
            return OperationResult.success(active)
        except MonitorError as e:
            logger.error(f"Error refreshing active cylinder: {e.message}")
            return OperationResult.failure(e)

    async def add(
        self, name: str, tare_kg: float, capacity_kg: float, make_active: bool = False
    ) -> OperationResult[int]:
        """
        Register a new cylinder.

        Args:
            name: Display name, trimmed before storing
            tare_kg: Empty weight of the cylinder
            capacity_kg: Fuel capacity when full
            make_active: Activate the cylinder right after inserting it

        Returns:
            OperationResult with the new cylinder id
        """
        name = (name or "").strip()
        if not name:
            return OperationResult.failure(ValidationError("Name cannot be empty"))
        if tare_kg < 0:
            return OperationResult.failure(ValidationError("Tare cannot be negative"))
        if capacity_kg <= 0:
            return OperationResult.failure(
                ValidationError("Capacity must be greater than zero")
            )

        try:
            cylinder_id = await self.cylinder_repo.insert(name, tare_kg, capacity_kg)
        except MonitorError as e:
            logger.error(f"Error adding cylinder '{name}': {e.message}")
            return OperationResult.failure(e)

        logger.info(f"Added cylinder {cylinder_id} '{name}' (tare={tare_kg}kg, capacity={capacity_kg}kg)")

        if make_active:
            activated = await self.set_active(cylinder_id)
            if not activated.ok:
                return OperationResult.failure(activated.error)

        return OperationResult.success(cylinder_id)

    async def set_active(self, cylinder_id: int) -> OperationResult[Cylinder]:
        """Deactivate every cylinder and activate ``cylinder_id`` atomically."""
        try:
            async with self._lock:
                cylinder = await self.cylinder_repo.set_active(cylinder_id)
                self.active_cylinder.set(cylinder)
        except MonitorError as e:
            logger.warning(f"Could not activate cylinder {cylinder_id}: {e.message}")
            return OperationResult.failure(e)

        logger.info(f"Active cylinder is now {cylinder.id} '{cylinder.name}'")
        return OperationResult.success(cylinder)

    async def get_active(self) -> OperationResult[Optional[Cylinder]]:
        try:
            return OperationResult.success(await self.cylinder_repo.get_active())
        except MonitorError as e:
            return OperationResult.failure(e)

    async def find_active(self, message: str = "No active cylinder configured") -> Cylinder:
        """Return the active cylinder or raise NoActiveCylinderError."""
        active = await self.cylinder_repo.get_active()
        if active is None:
            raise NoActiveCylinderError(message)
        return active

    async def get_cylinder(self, cylinder_id: int) -> OperationResult[Cylinder]:
        try:
            cylinder = await self.cylinder_repo.get_by_id(cylinder_id)
        except MonitorError as e:
            return OperationResult.failure(e)
        if cylinder is None:
            return OperationResult.failure(NotFoundError("Cylinder not found"))
        return OperationResult.success(cylinder)

    async def list_cylinders(self) -> OperationResult[List[Cylinder]]:
        """All cylinders, newest first."""
        try:
            return OperationResult.success(await self.cylinder_repo.get_all())
        except MonitorError as e:
            return OperationResult.failure(e)

    async def delete_inactive(self) -> OperationResult[int]:
        """
        Delete every non-active cylinder together with its measurements.

        Refused while no cylinder is active so the registry is never emptied
        by accident.
        """
        try:
            async with self._lock:
                await self.find_active("No active cylinder found")
                deleted = await self.cylinder_repo.delete_inactive()
        except MonitorError as e:
            logger.warning(f"Delete inactive cylinders failed: {e.message}")
            return OperationResult.failure(e)

        logger.info(f"Deleted {deleted} inactive cylinders")
        return OperationResult.success(deleted)
