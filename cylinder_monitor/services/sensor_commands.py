"""
Sensor Command Service - Tare, calibration and on-demand reads

Every command requires a connected transport; the calibration values live
in the sensor itself.
"""

import logging

from cylinder_monitor.errors import OperationResult, SensorCommandError, ValidationError
from cylinder_monitor.services.transport import SensorTransport

logger = logging.getLogger(__name__)

NOT_CONNECTED = "Sensor not connected"


class SensorCommandService:
    """Commands sent to the connected sensor."""

    def __init__(self, transport: SensorTransport):
        self.transport = transport

    @property
    def is_connected(self) -> bool:
        return bool(self.transport.connection_state.value)

    async def tare(self) -> OperationResult[None]:
        """Use the current reading as the zero reference. The scale must be empty."""
        if not self.is_connected:
            return OperationResult.failure(SensorCommandError(NOT_CONNECTED))
        result = await self.transport.tare()
        if result.ok:
            logger.info("Sensor tare completed")
        else:
            logger.warning(f"Sensor tare failed: {result.message}")
        return result

    async def calibrate(self, known_weight_kg: float) -> OperationResult[None]:
        """
        Adjust the sensor scale factor with a reference weight.

        Args:
            known_weight_kg: Weight currently on the scale, must be positive
        """
        if not self.is_connected:
            return OperationResult.failure(SensorCommandError(NOT_CONNECTED))
        if not known_weight_kg > 0:
            return OperationResult.failure(
                ValidationError("Known weight must be greater than zero")
            )
        result = await self.transport.calibrate(known_weight_kg)
        if result.ok:
            logger.info(f"Sensor calibrated with {known_weight_kg}kg")
        else:
            logger.warning(f"Sensor calibration failed: {result.message}")
        return result

    async def request_readings(self) -> OperationResult[None]:
        """Ask the sensor for a fresh weight and inclination reading."""
        if not self.is_connected:
            return OperationResult.failure(SensorCommandError(NOT_CONNECTED))
        try:
            await self.transport.request_weight_read()
            await self.transport.request_inclination_read()
        except OSError as e:
            logger.error(f"Error requesting sensor readings: {e}")
            return OperationResult.failure(SensorCommandError(f"Read request failed: {e}"))
        return OperationResult.success()
