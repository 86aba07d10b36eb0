"""HTTP routers."""

from .consumption_router import router as consumption_router
from .cylinders_router import router as cylinders_router
from .health_router import router as health_router
from .measurements_router import router as measurements_router

__all__ = [
    "consumption_router",
    "cylinders_router",
    "health_router",
    "measurements_router",
]
