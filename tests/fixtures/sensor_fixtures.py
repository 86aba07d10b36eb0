"""
Sensor fixtures for testing
FakeTransport records the commands it receives instead of talking to hardware.
"""

from typing import AsyncIterator, List, Tuple

import pytest

from cylinder_monitor.errors import OperationResult, SensorCommandError
from cylinder_monitor.models import DiscoveredDevice
from cylinder_monitor.state_signal import StateSignal

SENSOR_UUID = "91bad492-b950-4226-aa2b-4ede9fa42f59"
OTHER_UUID = "0000180f-0000-1000-8000-00805f9b34fb"


class FakeTransport:
    """In-memory SensorTransport"""

    def __init__(self, connected: bool = True, command_ok: bool = True):
        self.connection_state = StateSignal(connected)
        self.command_ok = command_ok
        self.calls: List[Tuple] = []
        self.weights: List[Tuple[float, int]] = []
        self.inclinations: List[Tuple[float, float, int]] = []

    async def weight_samples(self) -> AsyncIterator[Tuple[float, int]]:
        for sample in self.weights:
            yield sample

    async def inclination_samples(self) -> AsyncIterator[Tuple[float, float, int]]:
        for sample in self.inclinations:
            yield sample

    async def connect(self, address: str) -> None:
        self.calls.append(("connect", address))
        self.connection_state.set(True)

    async def disconnect(self) -> None:
        self.calls.append(("disconnect",))
        self.connection_state.set(False)

    async def request_weight_read(self) -> None:
        self.calls.append(("weight",))

    async def request_inclination_read(self) -> None:
        self.calls.append(("inclination",))

    async def tare(self) -> OperationResult[None]:
        self.calls.append(("tare",))
        if self.command_ok:
            return OperationResult.success()
        return OperationResult.failure(SensorCommandError("Tare operation failed"))

    async def calibrate(self, known_weight_kg: float) -> OperationResult[None]:
        self.calls.append(("calibrate", known_weight_kg))
        if self.command_ok:
            return OperationResult.success()
        return OperationResult.failure(SensorCommandError("Calibration failed"))


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def sensor_device():
    return DiscoveredDevice(
        name="CamperGas Sensor",
        address="AA:BB:CC:DD:EE:01",
        rssi=-60,
        services=(SENSOR_UUID.upper(),),
    )


@pytest.fixture
def other_device():
    return DiscoveredDevice(
        name="Headphones",
        address="AA:BB:CC:DD:EE:02",
        rssi=-80,
        services=(OTHER_UUID,),
    )
