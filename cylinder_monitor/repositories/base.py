"""Shared plumbing for the SQLAlchemy repositories."""

import asyncio
import functools
import logging
from typing import Any, Callable, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cylinder_monitor.errors import StorageError

logger = logging.getLogger(__name__)

R = TypeVar("R")


class BaseRepository:
    """Runs blocking SQL in a worker thread so the event loop never stalls."""

    def __init__(self, engine: Engine):
        self.engine = engine

    async def _run(self, operation: Callable[..., R], *args: Any) -> R:
        return await asyncio.to_thread(functools.partial(self._guarded, operation), *args)

    def _guarded(self, operation: Callable[..., R], *args: Any) -> R:
        try:
            return operation(*args)
        except SQLAlchemyError as e:
            logger.error(f"Storage error in {operation.__name__}: {e}")
            raise StorageError(f"Storage failure: {e.__class__.__name__}") from e
