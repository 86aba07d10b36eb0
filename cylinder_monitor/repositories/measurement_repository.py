"""
Measurement Repository - Database access for fuel measurements

Timestamp-ordered queries, last-N lookups per cylinder, single-row delete
and batch insert over the ``fuel_measurements`` table.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine

from cylinder_monitor.models import FuelMeasurement
from cylinder_monitor.repositories.base import BaseRepository
from cylinder_monitor.repositories.schema import fuel_measurements

logger = logging.getLogger(__name__)


def _to_measurement(row) -> FuelMeasurement:
    data = row._mapping
    return FuelMeasurement(
        id=data["id"],
        cylinder_id=data["cylinder_id"],
        cylinder_name=data["cylinder_name"],
        timestamp=data["timestamp"],
        fuel_kilograms=data["fuel_kilograms"],
        fuel_percentage=data["fuel_percentage"],
        total_weight_kg=data["total_weight_kg"],
        is_calibrated=bool(data["is_calibrated"]),
        is_historical=bool(data["is_historical"]),
    )


def _to_row(measurement: FuelMeasurement) -> Dict[str, Any]:
    return {
        "cylinder_id": measurement.cylinder_id,
        "cylinder_name": measurement.cylinder_name,
        "timestamp": measurement.timestamp,
        "fuel_kilograms": measurement.fuel_kilograms,
        "fuel_percentage": measurement.fuel_percentage,
        "total_weight_kg": measurement.total_weight_kg,
        "is_calibrated": measurement.is_calibrated,
        "is_historical": measurement.is_historical,
    }


class MeasurementRepository(BaseRepository):
    """Repository for fuel measurement data access operations."""

    def __init__(self, engine: Engine):
        super().__init__(engine)
        logger.info(f"MeasurementRepository initialized ({engine.url.get_backend_name()})")

    async def insert(self, measurement: FuelMeasurement) -> int:
        """Persist one measurement and return its id."""
        return await self._run(self._insert, measurement)

    async def insert_many(self, measurements: Sequence[FuelMeasurement]) -> int:
        """Persist a batch in one transaction; returns the number of rows written."""
        if not measurements:
            return 0
        return await self._run(self._insert_many, list(measurements))

    async def get_last_n(self, cylinder_id: int, limit: int) -> List[FuelMeasurement]:
        """The ``limit`` most recent measurements of a cylinder, newest first."""
        return await self._run(self._get_last_n, cylinder_id, limit)

    async def delete_by_id(self, measurement_id: int) -> bool:
        return await self._run(self._delete_by_id, measurement_id)

    async def get_between(
        self, start: int, end: int, cylinder_id: Optional[int] = None
    ) -> List[FuelMeasurement]:
        """Measurements with ``start <= timestamp <= end``, oldest first."""
        return await self._run(self._get_between, start, end, cylinder_id)

    async def get_all(self, cylinder_id: Optional[int] = None) -> List[FuelMeasurement]:
        """Every measurement (optionally for one cylinder), oldest first."""
        return await self._run(self._get_all, cylinder_id)

    async def get_latest_real_time(
        self, cylinder_id: Optional[int] = None
    ) -> Optional[FuelMeasurement]:
        return await self._run(self._get_latest_real_time, cylinder_id)

    async def count(self, cylinder_id: Optional[int] = None) -> int:
        return await self._run(self._count, cylinder_id)

    # -- blocking implementations ------------------------------------------------

    def _insert(self, measurement: FuelMeasurement) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(fuel_measurements.insert().values(**_to_row(measurement)))
            measurement_id = result.inserted_primary_key[0]
        logger.debug(
            f"Inserted measurement {measurement_id} for cylinder {measurement.cylinder_id}: "
            f"{measurement.total_weight_kg}kg"
        )
        return measurement_id

    def _insert_many(self, measurements: List[FuelMeasurement]) -> int:
        with self.engine.begin() as conn:
            conn.execute(fuel_measurements.insert(), [_to_row(m) for m in measurements])
        logger.info(f"Batch inserted {len(measurements)} measurements")
        return len(measurements)

    def _get_last_n(self, cylinder_id: int, limit: int) -> List[FuelMeasurement]:
        query = (
            select(fuel_measurements)
            .where(fuel_measurements.c.cylinder_id == cylinder_id)
            .order_by(fuel_measurements.c.timestamp.desc(), fuel_measurements.c.id.desc())
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_to_measurement(row) for row in rows]

    def _delete_by_id(self, measurement_id: int) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(
                delete(fuel_measurements).where(fuel_measurements.c.id == measurement_id)
            )
        return result.rowcount > 0

    def _get_between(
        self, start: int, end: int, cylinder_id: Optional[int]
    ) -> List[FuelMeasurement]:
        query = select(fuel_measurements).where(
            fuel_measurements.c.timestamp >= start,
            fuel_measurements.c.timestamp <= end,
        )
        if cylinder_id is not None:
            query = query.where(fuel_measurements.c.cylinder_id == cylinder_id)
        query = query.order_by(fuel_measurements.c.timestamp, fuel_measurements.c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_to_measurement(row) for row in rows]

    def _get_all(self, cylinder_id: Optional[int]) -> List[FuelMeasurement]:
        query = select(fuel_measurements)
        if cylinder_id is not None:
            query = query.where(fuel_measurements.c.cylinder_id == cylinder_id)
        query = query.order_by(fuel_measurements.c.timestamp, fuel_measurements.c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_to_measurement(row) for row in rows]

    def _get_latest_real_time(self, cylinder_id: Optional[int]) -> Optional[FuelMeasurement]:
        query = select(fuel_measurements).where(fuel_measurements.c.is_historical.is_(False))
        if cylinder_id is not None:
            query = query.where(fuel_measurements.c.cylinder_id == cylinder_id)
        query = query.order_by(
            fuel_measurements.c.timestamp.desc(), fuel_measurements.c.id.desc()
        ).limit(1)
        with self.engine.connect() as conn:
            row = conn.execute(query).first()
        return _to_measurement(row) if row else None

    def _count(self, cylinder_id: Optional[int]) -> int:
        query = select(func.count()).select_from(fuel_measurements)
        if cylinder_id is not None:
            query = query.where(fuel_measurements.c.cylinder_id == cylinder_id)
        with self.engine.connect() as conn:
            return conn.execute(query).scalar_one()
