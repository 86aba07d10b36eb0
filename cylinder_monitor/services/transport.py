"""Contract of the sensor transport (discovery, connection, reads, commands)."""

from typing import AsyncIterator, Protocol, Tuple, runtime_checkable

from cylinder_monitor.errors import OperationResult
from cylinder_monitor.state_signal import StateSignal


@runtime_checkable
class SensorTransport(Protocol):
    """
    What the monitor needs from the link to the physical sensor.

    ``weight_samples`` yields ``(total_weight_kg, timestamp_ms)`` and
    ``inclination_samples`` yields ``(pitch, roll, timestamp_ms)``.
    """

    connection_state: StateSignal[bool]

    def weight_samples(self) -> AsyncIterator[Tuple[float, int]]:
        ...

    def inclination_samples(self) -> AsyncIterator[Tuple[float, float, int]]:
        ...

    async def connect(self, address: str) -> None:
        ...

    async def disconnect(self) -> None:
        ...

    async def request_weight_read(self) -> None:
        ...

    async def request_inclination_read(self) -> None:
        ...

    async def tare(self) -> OperationResult[None]:
        ...

    async def calibrate(self, known_weight_kg: float) -> OperationResult[None]:
        ...
