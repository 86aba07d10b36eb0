"""Table definitions for cylinders and their fuel measurements."""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

gas_cylinders = Table(
    "gas_cylinders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("tare_kg", Float, nullable=False),
    Column("capacity_kg", Float, nullable=False),
    Column("is_active", Boolean, nullable=False, default=False),
    Column("created_at", BigInteger, nullable=False),
)

fuel_measurements = Table(
    "fuel_measurements",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "cylinder_id",
        Integer,
        ForeignKey("gas_cylinders.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("cylinder_name", String(100), nullable=False),
    Column("timestamp", BigInteger, nullable=False),
    Column("fuel_kilograms", Float, nullable=False),
    Column("fuel_percentage", Float, nullable=False),
    Column("total_weight_kg", Float, nullable=False),
    Column("is_calibrated", Boolean, nullable=False, default=True),
    Column("is_historical", Boolean, nullable=False, default=False),
    Index("ix_fuel_measurements_cylinder_ts", "cylinder_id", "timestamp"),
    Index("ix_fuel_measurements_ts", "timestamp"),
)


def create_schema(engine: Engine) -> None:
    metadata.create_all(engine)


def drop_schema(engine: Engine) -> None:
    metadata.drop_all(engine)
