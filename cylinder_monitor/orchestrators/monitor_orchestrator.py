"""
Monitor Orchestrator - Wires storage, repositories and services together

Thin composition layer: builds every component from Settings (or accepts
injected ones for tests) and owns the start-up and shutdown sequence.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cylinder_monitor.database_pool import create_db_engine
from cylinder_monitor.repositories import CylinderRepository, MeasurementRepository, create_schema
from cylinder_monitor.services import (
    ConsumptionAggregator,
    ConsumptionHistoryService,
    CylinderRegistry,
    DeviceDiscoveryFilter,
    MeasurementIngestionService,
    SensorCommandService,
    SensorDataProcessor,
    SensorTransport,
)
from cylinder_monitor.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class OrchestratorStatus:
    """Snapshot reported by the health endpoint."""

    database_ok: bool
    active_cylinder_id: Optional[int]
    discovery_scanning: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "healthy" if self.database_ok else "degraded",
            "database": "ok" if self.database_ok else "unavailable",
            "active_cylinder_id": self.active_cylinder_id,
            "discovery_scanning": self.discovery_scanning,
        }


class MonitorOrchestrator:
    """
    Builds and owns the monitor components.

    Repositories:
    - CylinderRepository: cylinders and activation
    - MeasurementRepository: fuel measurements

    Services:
    - CylinderRegistry, MeasurementIngestionService, ConsumptionHistoryService
    - DeviceDiscoveryFilter, SensorDataProcessor
    - SensorCommandService (only when a transport is supplied)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine: Optional[Engine] = None,
        transport: Optional[SensorTransport] = None,
    ):
        """
        Initialize MonitorOrchestrator.

        Args:
            settings: Settings instance, defaults to the global settings
            engine: Pre-built engine; when omitted one is created and owned
            transport: Sensor transport enabling the command service
        """
        self.settings = settings or get_settings()
        self._owns_engine = engine is None
        self.engine = engine or create_db_engine(
            self.settings.database.sqlalchemy_url, self.settings.database
        )

        # Repositories
        self.cylinder_repo = CylinderRepository(self.engine)
        self.measurement_repo = MeasurementRepository(self.engine)

        # Services
        self.registry = CylinderRegistry(self.cylinder_repo)
        self.ingestion = MeasurementIngestionService(
            self.registry,
            self.cylinder_repo,
            self.measurement_repo,
            self.settings.ingestion,
        )
        self.history = ConsumptionHistoryService(
            self.measurement_repo,
            ConsumptionAggregator(self.settings.consumption.noise_threshold_kg),
            tz=self.settings.consumption.timezone or None,
        )
        self.discovery = DeviceDiscoveryFilter(
            filter_enabled=self.settings.discovery.filter_enabled,
            service_uuid=self.settings.discovery.sensor_service_uuid,
        )
        self.processor = SensorDataProcessor(self.registry, self.ingestion)
        self.commands = SensorCommandService(transport) if transport is not None else None

        logger.info("MonitorOrchestrator initialized")

    async def startup(self) -> None:
        """Create the schema if needed and load the active cylinder signal."""
        for warning in self.settings.validate():
            logger.warning(f"Settings: {warning}")

        await asyncio.to_thread(create_schema, self.engine)
        refreshed = await self.registry.refresh()
        if refreshed.ok and refreshed.value is not None:
            logger.info(f"Active cylinder: {refreshed.value.id} '{refreshed.value.name}'")
        elif refreshed.ok:
            logger.info("No active cylinder configured")

    async def shutdown(self) -> None:
        self.discovery.stop()
        if self._owns_engine:
            await asyncio.to_thread(self.engine.dispose)
            logger.info("SQLAlchemy engine disposed")

    async def status(self) -> OrchestratorStatus:
        database_ok = await asyncio.to_thread(self._ping)
        active = self.registry.active_cylinder.value
        return OrchestratorStatus(
            database_ok=database_ok,
            active_cylinder_id=active.id if active else None,
            discovery_scanning=self.discovery.is_scanning,
        )

    def _ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {e}")
            return False
