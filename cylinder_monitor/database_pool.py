"""
Database Connection Pool Manager
Centralized SQLAlchemy engine with connection pooling for all storage access
"""

import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool

from cylinder_monitor.settings import DatabaseSettings

logger = logging.getLogger(__name__)

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

def create_db_engine(url: str, settings: Optional[DatabaseSettings] = None) -> Engine:
    """
    Build an engine for ``url``.

    SQLite (tests, local runs) shares one connection through StaticPool so an
    in-memory database survives across threads. Server databases get a
    QueuePool with pre-ping and recycling.
    """
    settings = settings or DatabaseSettings()

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.echo,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    logger.info(
        f"Creating SQLAlchemy engine with connection pool (size={settings.pool_size}, "
        f"overflow={settings.max_overflow})"
    )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_recycle=settings.pool_recycle,
        pool_pre_ping=True,  # Validate connections before use
        echo=settings.echo,
    )

