"""
Sensor Data Processor - Raw sensor payloads into the ingestion pipeline

Real-time weight readings go through MeasurementIngestionService in arrival
order and the resulting fuel level is published on ``latest_fuel``.
Offline batches carry relative timestamps (milliseconds ago); they are
converted to absolute time, de-duplicated across batches and imported as
historical measurements for the active cylinder.
"""

import asyncio
import logging
from typing import AsyncIterable, Callable, List, Optional, Set, Tuple

from cylinder_monitor.errors import (
    MonitorError,
    NoActiveCylinderError,
    OperationResult,
)
from cylinder_monitor.models import (
    Cylinder,
    FuelMeasurement,
    InclinationReading,
    SaveMeasurementResult,
    now_ms,
)
from cylinder_monitor.services.cylinder_registry import CylinderRegistry
from cylinder_monitor.services.measurement_ingestion import MeasurementIngestionService
from cylinder_monitor.services.sensor_payloads import (
    OfflineSample,
    Payload,
    decode_inclination,
    decode_offline_batch,
    decode_weight,
)
from cylinder_monitor.state_signal import StateSignal

logger = logging.getLogger(__name__)


class SensorDataProcessor:
    """Feeds decoded sensor data into storage and the live signals."""

    def __init__(
        self,
        registry: CylinderRegistry,
        ingestion: MeasurementIngestionService,
        clock: Callable[[], int] = now_ms,
    ):
        self.registry = registry
        self.ingestion = ingestion
        self._clock = clock
        self.latest_fuel: StateSignal[FuelMeasurement] = StateSignal()
        self.latest_inclination: StateSignal[InclinationReading] = StateSignal()
        self._weight_lock = asyncio.Lock()
        self._offline_lock = asyncio.Lock()
        self._processed_offline: Set[str] = set()
        self.offline_batches = 0
        self.offline_finished = False

    # ═══════════════════════════════════════════════════════════════════════
    # REAL-TIME
    # ═══════════════════════════════════════════════════════════════════════

    async def handle_weight(
        self, total_weight_kg: float, timestamp: Optional[int] = None
    ) -> OperationResult[SaveMeasurementResult]:
        timestamp = self._clock() if timestamp is None else timestamp
        async with self._weight_lock:
            result = await self.ingestion.record_real_time(total_weight_kg, timestamp)
            if result.ok:
                self._publish_fuel(result.value)
            else:
                logger.error(f"Error saving fuel measurement: {result.message}")
        return result

    async def handle_weight_payload(self, payload: Payload) -> OperationResult[SaveMeasurementResult]:
        """Decode ``{"w": kg}`` and record it."""
        try:
            weight = decode_weight(payload)
        except MonitorError as e:
            logger.warning(f"Discarding weight payload: {e.message}")
            return OperationResult.failure(e)
        return await self.handle_weight(weight)

    def _publish_fuel(self, saved: SaveMeasurementResult) -> None:
        # Throttled readings are published too so the live level stays fresh
        measurement = saved.measurement
        if measurement is None or not measurement.is_valid():
            return
        self.latest_fuel.set(measurement)
        logger.debug(
            f"Fuel level: {measurement.fuel_kilograms:.2f}kg ({measurement.fuel_percentage:.1f}%)"
        )

    # ═══════════════════════════════════════════════════════════════════════
    # INCLINATION
    # ═══════════════════════════════════════════════════════════════════════

    def handle_inclination(
        self, pitch: float, roll: float, timestamp: Optional[int] = None
    ) -> InclinationReading:
        reading = InclinationReading(
            pitch=pitch,
            roll=roll,
            timestamp=self._clock() if timestamp is None else timestamp,
        )
        self.latest_inclination.set(reading)
        return reading

    def handle_inclination_payload(self, payload: Payload) -> OperationResult[InclinationReading]:
        """Decode ``{"p": pitch, "r": roll}`` and publish it."""
        try:
            reading = decode_inclination(payload, self._clock())
        except MonitorError as e:
            logger.warning(f"Discarding inclination payload: {e.message}")
            return OperationResult.failure(e)
        self.latest_inclination.set(reading)
        return OperationResult.success(reading)

    # ═══════════════════════════════════════════════════════════════════════
    # OFFLINE BUFFER
    # ═══════════════════════════════════════════════════════════════════════

    def start_offline_session(self) -> None:
        """Forget previously seen offline samples before a new buffer download."""
        self._processed_offline.clear()
        self.offline_batches = 0
        self.offline_finished = False

    async def handle_offline_payload(self, payload: Payload) -> OperationResult[int]:
        """
        Import one offline batch for the active cylinder.

        Args:
            payload: JSON array of ``{"w": kg, "t": ms_ago}`` or an end marker

        Returns:
            OperationResult with the number of measurements stored; 0 for an
            end marker or a batch that was already imported
        """
        try:
            samples = decode_offline_batch(payload)
        except MonitorError as e:
            logger.warning(f"Discarding offline payload: {e.message}")
            return OperationResult.failure(e)

        if not samples:
            self.offline_finished = True
            logger.info(f"End of offline data after {self.offline_batches} batches")
            return OperationResult.success(0)

        async with self._offline_lock:
            fresh = self._unseen(samples)
            if not fresh:
                logger.debug("Offline batch already processed, ignoring duplicate")
                return OperationResult.success(0)

            active = await self._active_cylinder()
            if active is None:
                return OperationResult.failure(
                    NoActiveCylinderError("No active cylinder configured")
                )

            now = self._clock()
            result = await self.ingestion.record_historical(
                active.id, [sample.to_weight_sample(now) for sample in fresh]
            )
            if not result.ok:
                # Samples stay unseen so a resent batch is imported
                logger.error(f"Offline batch import failed: {result.message}")
                return result

            self._processed_offline.update(sample.key for sample in fresh)
            self.offline_batches += 1
        logger.info(f"Offline batch {self.offline_batches} saved: {result.value} measurements")
        return result

    async def _active_cylinder(self) -> Optional[Cylinder]:
        active = self.registry.active_cylinder.value
        if active is None:
            lookup = await self.registry.get_active()
            active = lookup.value if lookup.ok else None
        return active

    def _unseen(self, samples: List[OfflineSample]) -> List[OfflineSample]:
        fresh = []
        keys = set()
        for sample in samples:
            if sample.key in self._processed_offline or sample.key in keys:
                continue
            keys.add(sample.key)
            fresh.append(sample)
        return fresh

    # ═══════════════════════════════════════════════════════════════════════
    # STREAMS
    # ═══════════════════════════════════════════════════════════════════════

    async def consume_weights(self, samples: AsyncIterable[Tuple[float, int]]) -> int:
        """Record every ``(kg, ts)`` from a transport stream; returns how many were saved."""
        saved = 0
        async for total_weight_kg, timestamp in samples:
            result = await self.handle_weight(total_weight_kg, timestamp)
            if result.ok and result.value.processed:
                saved += 1
        return saved

    async def consume_inclinations(self, samples: AsyncIterable[Tuple[float, float, int]]) -> int:
        count = 0
        async for pitch, roll, timestamp in samples:
            self.handle_inclination(pitch, roll, timestamp)
            count += 1
        return count
