"""
Pytest Configuration for Cylinder Monitor Tests

Async tests run through pytest-asyncio (asyncio_mode = "auto" in pyproject.toml).
"""

import pytest

# Import all fixtures
from tests.fixtures.database_fixtures import *  # noqa
from tests.fixtures.monitor_fixtures import *  # noqa
from tests.fixtures.sensor_fixtures import *  # noqa

from cylinder_monitor.settings import reset_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Make every test re-read settings from the environment."""
    reset_settings()
    yield
    reset_settings()
