"""
Error taxonomy and explicit operation results.

Public service operations never let exceptions escape; they return an
OperationResult whose ``error`` is one of the MonitorError subclasses below.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class MonitorError(Exception):
    """Base class for every error raised inside the monitor core"""

    code = "monitor_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.code


class ValidationError(MonitorError):
    """Bad caller input or a measurement failing the validity check"""

    code = "validation_error"


class NotFoundError(MonitorError):
    """Referenced cylinder does not exist"""

    code = "not_found"


class NoActiveCylinderError(MonitorError):
    """Operation needs an active cylinder and none is configured"""

    code = "no_active_cylinder"


class StorageError(MonitorError):
    """Underlying persistence failure"""

    code = "storage_error"


class SensorCommandError(MonitorError):
    """Sensor command could not be delivered or was refused"""

    code = "sensor_command_error"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Success value or failure error, never both."""

    ok: bool
    value: Optional[T] = None
    error: Optional[MonitorError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: MonitorError) -> "OperationResult[T]":
        return cls(ok=False, error=error)

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None

    def unwrap(self) -> T:
        """Return the value or re-raise the stored error."""
        if not self.ok:
            raise self.error
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True, "value": self.value}
        return {
            "ok": False,
            "error": {"code": self.error.code, "message": self.error.message},
        }
