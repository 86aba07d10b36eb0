"""
Cylinder Monitor Settings
Centralized configuration from environment variables

All tunables (database, ingestion, outlier calibration, consumption,
discovery, logging, API) come from the environment or a local .env file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _get_env(key: str, default: str = "", required: bool = False) -> str:
    """Get environment variable with optional requirement enforcement."""
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set!")
    return value


def _get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    return int(os.getenv(key, str(default)))


def _get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    return float(os.getenv(key, str(default)))


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    return os.getenv(key, str(default)).lower() in ("true", "1", "yes")


def _get_env_list(key: str, default: str = "", separator: str = ",") -> List[str]:
    """Get list from comma-separated environment variable."""
    value = os.getenv(key, default)
    return [item.strip() for item in value.split(separator) if item.strip()]


# =============================================================================
# DATABASE SETTINGS
# =============================================================================
@dataclass
class DatabaseSettings:
    """
    Storage configuration.

    DATABASE_URL wins when set (e.g. ``sqlite://`` for local runs);
    otherwise a MySQL URL is composed from the MYSQL_* variables.
    """

    url: str = field(default_factory=lambda: _get_env("DATABASE_URL"))
    host: str = field(default_factory=lambda: _get_env("MYSQL_HOST", "localhost"))
    port: int = field(default_factory=lambda: _get_env_int("MYSQL_PORT", 3306))
    user: str = field(default_factory=lambda: _get_env("MYSQL_USER", "gas_admin"))
    password: str = field(default_factory=lambda: _get_env("MYSQL_PASSWORD", ""))
    database: str = field(
        default_factory=lambda: _get_env("MYSQL_DATABASE", "cylinder_monitor")
    )
    charset: str = "utf8mb4"

    # Connection pool
    pool_size: int = field(default_factory=lambda: _get_env_int("MYSQL_POOL_SIZE", 5))
    max_overflow: int = field(
        default_factory=lambda: _get_env_int("MYSQL_MAX_OVERFLOW", 5)
    )
    pool_recycle: int = field(
        default_factory=lambda: _get_env_int("MYSQL_POOL_RECYCLE", 1800)
    )
    echo: bool = field(default_factory=lambda: _get_env_bool("DB_ECHO", False))

    @property
    def sqlalchemy_url(self) -> str:
        """Connection string for SQLAlchemy."""
        if self.url:
            return self.url
        return (
            f"mysql+pymysql://{self.user}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}"
            f"?charset={self.charset}"
        )


# =============================================================================
# INGESTION SETTINGS
# =============================================================================
@dataclass
class IngestionSettings:
    """
    Real-time ingestion tunables.

    The outlier thresholds are calibration knobs, not physical constants:
    a stored reading is only removed when it sits on the same side of both
    neighbours, far from each of them, while the neighbours agree.
    """

    # 0 disables throttling
    min_seconds_between_saves: float = field(
        default_factory=lambda: _get_env_float("MIN_SECONDS_BETWEEN_SAVES", 120.0)
    )
    outlier_min_deviation_kg: float = field(
        default_factory=lambda: _get_env_float("OUTLIER_MIN_DEVIATION_KG", 1.0)
    )
    outlier_min_deviation_pct: float = field(
        default_factory=lambda: _get_env_float("OUTLIER_MIN_DEVIATION_PCT", 30.0)
    )
    outlier_max_neighbor_gap_kg: float = field(
        default_factory=lambda: _get_env_float("OUTLIER_MAX_NEIGHBOR_GAP_KG", 1.0)
    )
    outlier_spread_factor: float = field(
        default_factory=lambda: _get_env_float("OUTLIER_SPREAD_FACTOR", 2.0)
    )


# =============================================================================
# CONSUMPTION SETTINGS
# =============================================================================
@dataclass
class ConsumptionSettings:
    """Consumption aggregation configuration."""

    # Increases smaller than this are treated as sensor noise (0 = off)
    noise_threshold_kg: float = field(
        default_factory=lambda: _get_env_float("CONSUMPTION_NOISE_THRESHOLD_KG", 0.0)
    )
    # IANA zone name used for day buckets; empty means local time
    timezone: str = field(default_factory=lambda: _get_env("CONSUMPTION_TIMEZONE", ""))


# =============================================================================
# DISCOVERY SETTINGS
# =============================================================================
@dataclass
class DiscoverySettings:
    """Sensor discovery configuration."""

    sensor_service_uuid: str = field(
        default_factory=lambda: _get_env(
            "SENSOR_SERVICE_UUID", "91bad492-b950-4226-aa2b-4ede9fa42f59"
        )
    )
    filter_enabled: bool = field(
        default_factory=lambda: _get_env_bool("DISCOVERY_FILTER_ENABLED", False)
    )


# =============================================================================
# LOGGING SETTINGS
# =============================================================================
@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO").upper())
    log_to_file: bool = field(default_factory=lambda: _get_env_bool("LOG_TO_FILE", False))
    logs_dir: Path = field(
        default_factory=lambda: Path(_get_env("LOGS_DIR", "logs"))
    )


# =============================================================================
# API SETTINGS
# =============================================================================
@dataclass
class ApiSettings:
    """HTTP API configuration."""

    title: str = "Cylinder Monitor API"
    version: str = "1.0.0"
    prefix: str = field(default_factory=lambda: _get_env("API_PREFIX", "/api"))
    cors_origins: List[str] = field(
        default_factory=lambda: _get_env_list(
            "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
        )
    )
    host: str = field(default_factory=lambda: _get_env("API_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _get_env_int("API_PORT", 8000))


# =============================================================================
# GLOBAL SETTINGS
# =============================================================================
@dataclass
class Settings:
    """Settings container grouping every section."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    ingestion: IngestionSettings = field(default_factory=IngestionSettings)
    consumption: ConsumptionSettings = field(default_factory=ConsumptionSettings)
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    api: ApiSettings = field(default_factory=ApiSettings)

    def validate(self) -> List[str]:
        """Validate settings and return list of warnings."""
        warnings = []

        if not self.database.url and not self.database.password:
            warnings.append("MYSQL_PASSWORD not set")

        if self.ingestion.outlier_max_neighbor_gap_kg < 0:
            warnings.append("OUTLIER_MAX_NEIGHBOR_GAP_KG is negative - outlier removal disabled")

        if self.consumption.noise_threshold_kg < 0:
            warnings.append("CONSUMPTION_NOISE_THRESHOLD_KG is negative - treated as 0")

        return warnings

    def to_dict(self) -> Dict:
        """Export settings as dictionary (for debugging, excludes secrets)."""
        return {
            "database_host": self.database.host if not self.database.url else None,
            "min_seconds_between_saves": self.ingestion.min_seconds_between_saves,
            "noise_threshold_kg": self.consumption.noise_threshold_kg,
            "discovery_filter_enabled": self.discovery.filter_enabled,
            "log_level": self.logging.level,
        }


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached instance so the next call re-reads the environment."""
    global _settings
    _settings = None
