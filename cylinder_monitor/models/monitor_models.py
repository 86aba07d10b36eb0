"""
Cylinder Monitor Data Models
============================

Dataclasses shared by the repositories, services and API layer.
Timestamps are integer milliseconds since the Unix epoch.
"""

import math
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional, Tuple

# Primary GATT service advertised by compatible weight sensors
SENSOR_SERVICE_UUID = "91bad492-b950-4226-aa2b-4ede9fa42f59"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# ══════════════════════════════════════════════════════════════════════════════
# CYLINDERS & MEASUREMENTS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Cylinder:
    """A gas cylinder; at most one is active at any time."""

    id: int
    name: str
    tare_kg: float
    capacity_kg: float
    is_active: bool = False
    created_at: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tare_kg": self.tare_kg,
            "capacity_kg": self.capacity_kg,
            "is_active": self.is_active,
            "created_at": self.created_at,
        }


def compute_fuel(total_weight_kg: float, tare_kg: float, capacity_kg: float) -> Tuple[float, float]:
    """
    Convert a total weight into (fuel kg, fuel %).

    The percentage is clamped to [0, 100] so an overfilled cylinder still
    reads as full. NaN and infinite inputs propagate so the validity check
    rejects them.
    """
    fuel_kilograms = total_weight_kg - tare_kg
    if fuel_kilograms < 0:
        fuel_kilograms = 0.0
    fuel_percentage = 0.0
    if capacity_kg > 0:
        fuel_percentage = fuel_kilograms / capacity_kg * 100
        if math.isfinite(fuel_percentage):
            fuel_percentage = min(max(fuel_percentage, 0.0), 100.0)
    return float(fuel_kilograms), float(fuel_percentage)


@dataclass(frozen=True)
class FuelMeasurement:
    """Fuel level derived from one weight sample."""

    cylinder_id: int
    cylinder_name: str
    timestamp: int
    fuel_kilograms: float
    fuel_percentage: float
    total_weight_kg: float
    is_calibrated: bool = True
    is_historical: bool = False
    id: Optional[int] = None

    @classmethod
    def from_weight(
        cls,
        cylinder: Cylinder,
        total_weight_kg: float,
        timestamp: int,
        is_historical: bool = False,
    ) -> "FuelMeasurement":
        fuel_kilograms, fuel_percentage = compute_fuel(
            total_weight_kg, cylinder.tare_kg, cylinder.capacity_kg
        )
        return cls(
            cylinder_id=cylinder.id,
            cylinder_name=cylinder.name,
            timestamp=timestamp,
            fuel_kilograms=fuel_kilograms,
            fuel_percentage=fuel_percentage,
            total_weight_kg=total_weight_kg,
            is_calibrated=True,
            is_historical=is_historical,
        )

    def is_valid(self) -> bool:
        return (
            math.isfinite(self.fuel_kilograms)
            and self.fuel_kilograms >= 0
            and math.isfinite(self.fuel_percentage)
            and 0 <= self.fuel_percentage <= 100
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "cylinder_id": self.cylinder_id,
            "cylinder_name": self.cylinder_name,
            "timestamp": self.timestamp,
            "fuel_kilograms": round(self.fuel_kilograms, 3),
            "fuel_percentage": round(self.fuel_percentage, 2),
            "total_weight_kg": self.total_weight_kg,
            "is_calibrated": self.is_calibrated,
            "is_historical": self.is_historical,
        }


@dataclass(frozen=True)
class Consumption:
    """Read-only view of a measurement used by the consumption analytics."""

    cylinder_id: int
    cylinder_name: str
    date: int
    fuel_kilograms: float
    fuel_percentage: float
    total_weight_kg: float
    is_calibrated: bool = True
    is_historical: bool = False
    id: Optional[int] = None

    @property
    def timestamp(self) -> int:
        return self.date

    @classmethod
    def from_measurement(cls, measurement: FuelMeasurement) -> "Consumption":
        return cls(
            id=measurement.id,
            cylinder_id=measurement.cylinder_id,
            cylinder_name=measurement.cylinder_name,
            date=measurement.timestamp,
            fuel_kilograms=measurement.fuel_kilograms,
            fuel_percentage=measurement.fuel_percentage,
            total_weight_kg=measurement.total_weight_kg,
            is_calibrated=measurement.is_calibrated,
            is_historical=measurement.is_historical,
        )


@dataclass(frozen=True)
class SaveMeasurementResult:
    """Outcome of a real-time save: stored, or skipped and why."""

    measurement_id: Optional[int]
    processed: bool
    reason: str = ""
    removed_outlier_id: Optional[int] = None
    # Fuel level computed for the sample, carrying its id once stored
    measurement: Optional[FuelMeasurement] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "measurement_id": self.measurement_id,
            "processed": self.processed,
            "reason": self.reason,
            "removed_outlier_id": self.removed_outlier_id,
        }


@dataclass(frozen=True)
class ChartDataPoint:
    """Fuel consumed on one calendar day."""

    day: date
    kilograms: float

    def to_dict(self) -> Dict[str, Any]:
        return {"day": self.day.isoformat(), "kilograms": round(self.kilograms, 3)}


# ══════════════════════════════════════════════════════════════════════════════
# SENSOR SIDE
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class InclinationReading:
    """Transient pitch/roll reading in degrees; never persisted."""

    pitch: float
    roll: float
    timestamp: int = field(default_factory=now_ms)


@dataclass(frozen=True)
class WeightSample:
    """Raw total weight reported by the sensor."""

    total_weight_kg: float
    timestamp: int = field(default_factory=now_ms)


@dataclass(frozen=True)
class DiscoveredDevice:
    """A sensor identity seen during a discovery scan."""

    name: str
    address: str
    rssi: int
    services: Tuple[str, ...] = ()
    is_connectable: bool = True
    last_seen: int = field(default_factory=now_ms)

    def advertises(self, service_uuid: str) -> bool:
        wanted = service_uuid.lower()
        return any(uuid.lower() == wanted for uuid in self.services)

    @property
    def is_compatible(self) -> bool:
        return self.advertises(SENSOR_SERVICE_UUID)

    @property
    def signal_strength(self) -> str:
        if self.rssi >= -50:
            return "Excellent"
        if self.rssi >= -70:
            return "Good"
        if self.rssi >= -85:
            return "Fair"
        return "Weak"

    @property
    def device_type(self) -> str:
        lowered = self.name.lower()
        if "campergas" in lowered:
            return "Gas Sensor"
        if "weight" in lowered:
            return "Weight Sensor"
        if "inclination" in lowered:
            return "Inclination Sensor"
        if self.is_compatible:
            return "Compatible Device"
        return "BLE Device"
