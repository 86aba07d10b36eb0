"""Data models for type safety and validation."""

from .monitor_models import (
    SENSOR_SERVICE_UUID,
    ChartDataPoint,
    Consumption,
    Cylinder,
    DiscoveredDevice,
    FuelMeasurement,
    InclinationReading,
    SaveMeasurementResult,
    WeightSample,
    compute_fuel,
    now_ms,
)

__all__ = [
    "SENSOR_SERVICE_UUID",
    "ChartDataPoint",
    "Consumption",
    "Cylinder",
    "DiscoveredDevice",
    "FuelMeasurement",
    "InclinationReading",
    "SaveMeasurementResult",
    "WeightSample",
    "compute_fuel",
    "now_ms",
]
