"""
Repository Layer - Data Access
Each repository wraps one table and runs its SQL off the event loop.
"""

from cylinder_monitor.repositories.cylinder_repository import CylinderRepository
from cylinder_monitor.repositories.measurement_repository import MeasurementRepository
from cylinder_monitor.repositories.schema import (
    create_schema,
    drop_schema,
    fuel_measurements,
    gas_cylinders,
    metadata,
)

__all__ = [
    "CylinderRepository",
    "MeasurementRepository",
    "create_schema",
    "drop_schema",
    "fuel_measurements",
    "gas_cylinders",
    "metadata",
]
