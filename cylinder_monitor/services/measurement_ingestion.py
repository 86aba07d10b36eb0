"""
Measurement Ingestion Service - Weight samples to stored fuel measurements

Real-time samples are converted against the active cylinder, validated,
persisted and then screened for a transient outlier among the previously
stored readings. Historical batches from the sensor's offline buffer are
validated per sample and bulk inserted without outlier screening.
"""

import asyncio
import dataclasses
import logging
import math
import time
import weakref
from typing import Callable, Iterable, List, Optional, Tuple

from cylinder_monitor.errors import (
    MonitorError,
    NotFoundError,
    OperationResult,
    ValidationError,
)
from cylinder_monitor.models import (
    FuelMeasurement,
    SaveMeasurementResult,
    WeightSample,
    now_ms,
)
from cylinder_monitor.repositories.cylinder_repository import CylinderRepository
from cylinder_monitor.repositories.measurement_repository import MeasurementRepository
from cylinder_monitor.services.cylinder_registry import CylinderRegistry
from cylinder_monitor.services.outlier_detector import WINDOW_SIZE, OutlierDetector
from cylinder_monitor.settings import IngestionSettings

logger = logging.getLogger(__name__)

SAVED_REASON = "Measurement saved successfully"


class MeasurementIngestionService:
    """Converts, validates, persists and outlier-corrects weight samples."""

    def __init__(
        self,
        registry: CylinderRegistry,
        cylinder_repo: CylinderRepository,
        measurement_repo: MeasurementRepository,
        settings: Optional[IngestionSettings] = None,
        detector: Optional[OutlierDetector] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize MeasurementIngestionService.

        Args:
            registry: CylinderRegistry used to resolve the active cylinder
            cylinder_repo: CylinderRepository for historical imports
            measurement_repo: MeasurementRepository instance
            settings: Throttling and outlier thresholds
            detector: Outlier rule, built from settings when omitted
            clock: Monotonic seconds source for save throttling
        """
        self.registry = registry
        self.cylinder_repo = cylinder_repo
        self.measurement_repo = measurement_repo
        self.settings = settings or IngestionSettings()
        self.detector = detector or OutlierDetector.from_settings(self.settings)
        self._clock = clock
        # Locks live only while some task holds or awaits them
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )
        # (cylinder id, clock reading) of the last real-time save
        self._last_save: Optional[Tuple[int, float]] = None
        logger.info(
            f"MeasurementIngestionService initialized "
            f"(min {self.settings.min_seconds_between_saves}s between saves)"
        )

    # ═══════════════════════════════════════════════════════════════════════
    # REAL-TIME
    # ═══════════════════════════════════════════════════════════════════════

    async def record_real_time(
        self, total_weight_kg: float, timestamp: Optional[int] = None
    ) -> OperationResult[SaveMeasurementResult]:
        """
        Store a live weight reading for the active cylinder.

        Args:
            total_weight_kg: Weight reported by the sensor, cylinder included
            timestamp: Epoch milliseconds, defaults to now

        Returns:
            OperationResult with a SaveMeasurementResult; ``processed`` is
            False when the sample was throttled
        """
        timestamp = now_ms() if timestamp is None else timestamp
        try:
            cylinder = await self.registry.find_active()
            measurement = FuelMeasurement.from_weight(cylinder, total_weight_kg, timestamp)
            lock = self._lock_for(cylinder.id)
            async with lock:
                skipped = self._throttle_reason(cylinder.id)
                if skipped:
                    logger.debug(f"Cylinder {cylinder.id}: {skipped}")
                    return OperationResult.success(
                        SaveMeasurementResult(
                            measurement_id=None,
                            processed=False,
                            reason=skipped,
                            measurement=measurement,
                        )
                    )

                if not measurement.is_valid():
                    raise ValidationError("Measurement data is not valid")

                measurement_id = await self.measurement_repo.insert(measurement)
                self._last_save = (cylinder.id, self._clock())
                removed_id = await self._correct_outlier(cylinder.id)
        except MonitorError as e:
            logger.warning(f"Real-time measurement rejected: {e.message}")
            return OperationResult.failure(e)

        reason = SAVED_REASON
        if removed_id is not None:
            reason = f"{SAVED_REASON}; removed outlier measurement {removed_id}"
        return OperationResult.success(
            SaveMeasurementResult(
                measurement_id=measurement_id,
                processed=True,
                reason=reason,
                removed_outlier_id=removed_id,
                measurement=dataclasses.replace(measurement, id=measurement_id),
            )
        )

    def _lock_for(self, cylinder_id: int) -> asyncio.Lock:
        lock = self._locks.get(cylinder_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[cylinder_id] = lock
        return lock

    def _throttle_reason(self, cylinder_id: int) -> Optional[str]:
        min_interval = self.settings.min_seconds_between_saves
        if min_interval <= 0 or self._last_save is None:
            return None
        # A newly activated cylinder starts a fresh interval
        last_cylinder_id, last = self._last_save
        if last_cylinder_id != cylinder_id:
            return None

        remaining = min_interval - (self._clock() - last)
        if remaining <= 0:
            return None
        remaining = int(math.ceil(remaining))
        return f"Measurement skipped: remaining {remaining // 60}m {remaining % 60}s"

    async def _correct_outlier(self, cylinder_id: int) -> Optional[int]:
        """Delete at most one transient reading; never fails the caller."""
        try:
            window = await self.measurement_repo.get_last_n(cylinder_id, WINDOW_SIZE)
            outlier = self.detector.find_outlier(window)
            if outlier is None or outlier.id is None:
                return None
            if not await self.measurement_repo.delete_by_id(outlier.id):
                return None
            logger.info(
                f"Removed outlier measurement {outlier.id} "
                f"({outlier.total_weight_kg}kg) for cylinder {cylinder_id}"
            )
            return outlier.id
        except Exception as e:
            logger.warning(f"Outlier correction failed for cylinder {cylinder_id}: {e}", exc_info=True)
            return None

    # ═══════════════════════════════════════════════════════════════════════
    # HISTORICAL
    # ═══════════════════════════════════════════════════════════════════════

    async def record_historical(
        self, cylinder_id: int, samples: Iterable[WeightSample]
    ) -> OperationResult[int]:
        """
        Import samples from the sensor's offline buffer.

        Invalid samples are dropped individually; the survivors are written
        in one batch.

        Returns:
            OperationResult with the number of inserted measurements
        """
        try:
            cylinder = await self.cylinder_repo.get_by_id(cylinder_id)
            if cylinder is None:
                raise NotFoundError("Cylinder not found")

            measurements = []
            dropped = 0
            for sample in samples:
                measurement = FuelMeasurement.from_weight(
                    cylinder, sample.total_weight_kg, sample.timestamp, is_historical=True
                )
                if measurement.is_valid():
                    measurements.append(measurement)
                else:
                    dropped += 1

            if dropped:
                logger.warning(f"Dropped {dropped} invalid historical samples for cylinder {cylinder_id}")

            async with self._lock_for(cylinder_id):
                inserted = await self.measurement_repo.insert_many(measurements)
        except MonitorError as e:
            logger.warning(f"Historical import for cylinder {cylinder_id} failed: {e.message}")
            return OperationResult.failure(e)

        logger.info(f"Imported {inserted} historical measurements for cylinder {cylinder_id}")
        return OperationResult.success(inserted)

    # ═══════════════════════════════════════════════════════════════════════
    # READS
    # ═══════════════════════════════════════════════════════════════════════

    async def latest_real_time(
        self, cylinder_id: Optional[int] = None
    ) -> OperationResult[Optional[FuelMeasurement]]:
        try:
            return OperationResult.success(
                await self.measurement_repo.get_latest_real_time(cylinder_id)
            )
        except MonitorError as e:
            return OperationResult.failure(e)

    async def measurements_between(
        self, start: int, end: int, cylinder_id: Optional[int] = None
    ) -> OperationResult[List[FuelMeasurement]]:
        """Stored measurements in ``[start, end]``, oldest first."""
        if start > end:
            return OperationResult.failure(ValidationError("Start must not be after end"))
        try:
            return OperationResult.success(
                await self.measurement_repo.get_between(start, end, cylinder_id)
            )
        except MonitorError as e:
            return OperationResult.failure(e)
