"""Shared router helpers: orchestrator lookup and result-to-HTTP mapping."""

from typing import TypeVar

from fastapi import HTTPException, Request

from cylinder_monitor.errors import (
    NoActiveCylinderError,
    NotFoundError,
    OperationResult,
    SensorCommandError,
    StorageError,
    ValidationError,
)
from cylinder_monitor.orchestrators import MonitorOrchestrator

T = TypeVar("T")

STATUS_CODES = {
    ValidationError: 422,
    NotFoundError: 404,
    NoActiveCylinderError: 409,
    StorageError: 503,
    SensorCommandError: 502,
}


def get_orchestrator(request: Request) -> MonitorOrchestrator:
    return request.app.state.orchestrator


def unwrap_or_raise(result: OperationResult[T]) -> T:
    """Return the result value or raise the matching HTTPException."""
    if result.ok:
        return result.value
    error = result.error
    status_code = STATUS_CODES.get(type(error), 500)
    raise HTTPException(
        status_code=status_code,
        detail={"code": error.code, "message": error.message},
    )
