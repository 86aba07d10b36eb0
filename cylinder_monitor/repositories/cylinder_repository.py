"""
Cylinder Repository - Database access for gas cylinders

Activation (deactivate all, activate one) and the bulk removal of inactive
cylinders each run inside a single transaction.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.engine import Engine

from cylinder_monitor.errors import NotFoundError
from cylinder_monitor.models import Cylinder, now_ms
from cylinder_monitor.repositories.base import BaseRepository
from cylinder_monitor.repositories.schema import fuel_measurements, gas_cylinders

logger = logging.getLogger(__name__)


def _to_cylinder(row) -> Cylinder:
    data = row._mapping
    return Cylinder(
        id=data["id"],
        name=data["name"],
        tare_kg=data["tare_kg"],
        capacity_kg=data["capacity_kg"],
        is_active=bool(data["is_active"]),
        created_at=data["created_at"],
    )


class CylinderRepository(BaseRepository):
    """Repository for cylinder data access operations."""

    def __init__(self, engine: Engine):
        super().__init__(engine)
        logger.info(f"CylinderRepository initialized ({engine.url.get_backend_name()})")

    # Reads
    async def get_all(self) -> List[Cylinder]:
        """All cylinders, newest first."""
        return await self._run(self._get_all)

    async def get_by_id(self, cylinder_id: int) -> Optional[Cylinder]:
        return await self._run(self._get_by_id, cylinder_id)

    async def get_active(self) -> Optional[Cylinder]:
        return await self._run(self._get_active)

    # Writes
    async def insert(
        self, name: str, tare_kg: float, capacity_kg: float, created_at: Optional[int] = None
    ) -> int:
        """Insert an inactive cylinder and return its id."""
        return await self._run(self._insert, name, tare_kg, capacity_kg, created_at or now_ms())

    async def set_active(self, cylinder_id: int) -> Cylinder:
        """Make ``cylinder_id`` the only active cylinder. Raises NotFoundError."""
        return await self._run(self._set_active, cylinder_id)

    async def delete_inactive(self) -> int:
        """Delete every inactive cylinder with its measurements; returns the count."""
        return await self._run(self._delete_inactive)

    # -- blocking implementations ------------------------------------------------

    def _get_all(self) -> List[Cylinder]:
        query = select(gas_cylinders).order_by(
            gas_cylinders.c.created_at.desc(), gas_cylinders.c.id.desc()
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        logger.debug(f"Fetched {len(rows)} cylinders")
        return [_to_cylinder(row) for row in rows]

    def _get_by_id(self, cylinder_id: int) -> Optional[Cylinder]:
        query = select(gas_cylinders).where(gas_cylinders.c.id == cylinder_id)
        with self.engine.connect() as conn:
            row = conn.execute(query).first()
        return _to_cylinder(row) if row else None

    def _get_active(self) -> Optional[Cylinder]:
        query = (
            select(gas_cylinders)
            .where(gas_cylinders.c.is_active.is_(True))
            .order_by(gas_cylinders.c.id)
            .limit(1)
        )
        with self.engine.connect() as conn:
            row = conn.execute(query).first()
        return _to_cylinder(row) if row else None

    def _insert(self, name: str, tare_kg: float, capacity_kg: float, created_at: int) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                gas_cylinders.insert().values(
                    name=name,
                    tare_kg=tare_kg,
                    capacity_kg=capacity_kg,
                    is_active=False,
                    created_at=created_at,
                )
            )
            cylinder_id = result.inserted_primary_key[0]
        logger.info(f"Inserted cylinder {cylinder_id} ({name})")
        return cylinder_id

    def _set_active(self, cylinder_id: int) -> Cylinder:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(gas_cylinders).where(gas_cylinders.c.id == cylinder_id)
            ).first()
            if row is None:
                raise NotFoundError("Cylinder not found")
            conn.execute(update(gas_cylinders).values(is_active=False))
            conn.execute(
                update(gas_cylinders)
                .where(gas_cylinders.c.id == cylinder_id)
                .values(is_active=True)
            )
        return replace(_to_cylinder(row), is_active=True)

    def _delete_inactive(self) -> int:
        with self.engine.begin() as conn:
            inactive_ids = [
                row.id
                for row in conn.execute(
                    select(gas_cylinders.c.id).where(gas_cylinders.c.is_active.is_(False))
                )
            ]
            if not inactive_ids:
                return 0
            conn.execute(
                delete(fuel_measurements).where(
                    fuel_measurements.c.cylinder_id.in_(inactive_ids)
                )
            )
            result = conn.execute(
                delete(gas_cylinders).where(gas_cylinders.c.id.in_(inactive_ids))
            )
            deleted = result.rowcount
        logger.info(f"Deleted {deleted} inactive cylinders: {inactive_ids}")
        return deleted
