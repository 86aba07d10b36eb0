"""
Service fixtures for testing
Throttling is disabled unless a test builds its own IngestionSettings.
"""

import pytest

from cylinder_monitor.services import (
    ConsumptionAggregator,
    ConsumptionHistoryService,
    CylinderRegistry,
    MeasurementIngestionService,
    SensorDataProcessor,
)
from cylinder_monitor.settings import (
    ApiSettings,
    ConsumptionSettings,
    DatabaseSettings,
    DiscoverySettings,
    IngestionSettings,
    LoggingSettings,
    Settings,
)

FIXED_NOW_MS = 1_700_000_000_000


@pytest.fixture
def ingestion_settings():
    return IngestionSettings(min_seconds_between_saves=0)


@pytest.fixture
def registry(cylinder_repo):
    return CylinderRegistry(cylinder_repo)


@pytest.fixture
def ingestion(registry, cylinder_repo, measurement_repo, ingestion_settings):
    return MeasurementIngestionService(
        registry, cylinder_repo, measurement_repo, ingestion_settings
    )


@pytest.fixture
def aggregator():
    return ConsumptionAggregator()


@pytest.fixture
def history(measurement_repo):
    return ConsumptionHistoryService(measurement_repo, tz="UTC", clock=lambda: FIXED_NOW_MS)


@pytest.fixture
def processor(registry, ingestion):
    return SensorDataProcessor(registry, ingestion, clock=lambda: FIXED_NOW_MS)


@pytest.fixture
async def active_cylinder(registry):
    """Active cylinder with tare 5 kg and capacity 10 kg"""
    result = await registry.add("Butane 12.5", 5.0, 10.0, make_active=True)
    assert result.ok
    return (await registry.get_cylinder(result.value)).value


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at SQLite with throttling off"""
    return Settings(
        database=DatabaseSettings(url="sqlite://"),
        ingestion=IngestionSettings(min_seconds_between_saves=0),
        consumption=ConsumptionSettings(noise_threshold_kg=0.0, timezone="UTC"),
        discovery=DiscoverySettings(filter_enabled=True),
        logging=LoggingSettings(level="DEBUG", log_to_file=False, logs_dir=tmp_path),
        api=ApiSettings(prefix="/api", cors_origins=["http://localhost:3000"]),
    )
