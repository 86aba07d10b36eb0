"""Service layer for business logic."""

from .consumption_aggregator import ConsumptionAggregator
from .consumption_history import ConsumptionHistoryService, ConsumptionSummary
from .cylinder_registry import CylinderRegistry
from .device_discovery import DeviceDiscoveryFilter
from .measurement_ingestion import MeasurementIngestionService
from .outlier_detector import OutlierDetector
from .sensor_commands import SensorCommandService
from .sensor_data_processor import SensorDataProcessor
from .transport import SensorTransport

__all__ = [
    "ConsumptionAggregator",
    "ConsumptionHistoryService",
    "ConsumptionSummary",
    "CylinderRegistry",
    "DeviceDiscoveryFilter",
    "MeasurementIngestionService",
    "OutlierDetector",
    "SensorCommandService",
    "SensorDataProcessor",
    "SensorTransport",
]
