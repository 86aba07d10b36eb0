"""
Device Discovery Filter - Deduplicated sensor list for a scan session

Devices are keyed by address and keep their first-seen position. The visible
list (published on ``devices``) is either every device or only those
advertising the sensor service, depending on the filter.
"""

import logging
from typing import Dict, Tuple

from cylinder_monitor.models import SENSOR_SERVICE_UUID, DiscoveredDevice
from cylinder_monitor.state_signal import StateSignal

logger = logging.getLogger(__name__)


class DeviceDiscoveryFilter:
    """Scan-session device list. Call from the event loop thread."""

    def __init__(self, filter_enabled: bool = True, service_uuid: str = SENSOR_SERVICE_UUID):
        self.service_uuid = service_uuid
        self._filter_enabled = filter_enabled
        self._scanning = False
        self._devices: Dict[str, DiscoveredDevice] = {}
        self.devices: StateSignal[Tuple[DiscoveredDevice, ...]] = StateSignal(())

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    @property
    def filter_enabled(self) -> bool:
        return self._filter_enabled

    @property
    def visible(self) -> Tuple[DiscoveredDevice, ...]:
        return self.devices.value

    def start(self) -> None:
        """Begin a new session; the previous session's devices are cleared."""
        if self._scanning:
            return
        self._scanning = True
        self._devices.clear()
        self._publish()
        logger.info("Device discovery started")

    def stop(self) -> None:
        """End the session, keeping the last visible list."""
        if not self._scanning:
            return
        self._scanning = False
        logger.info(f"Device discovery stopped ({len(self.visible)} visible devices)")

    def on_discovered(self, device: DiscoveredDevice) -> None:
        if not self._scanning:
            return

        if device.address in self._devices:
            # dict assignment keeps the original insertion position
            self._devices[device.address] = device
        elif not self._filter_enabled or self._matches(device):
            self._devices[device.address] = device
            logger.debug(f"Discovered {device.name or device.address} ({device.rssi} dBm)")
        else:
            return

        self._publish()

    def set_filter(self, enabled: bool) -> None:
        self._filter_enabled = enabled
        self._publish()

    def _matches(self, device: DiscoveredDevice) -> bool:
        return device.advertises(self.service_uuid)

    def _publish(self) -> None:
        devices = self._devices.values()
        if self._filter_enabled:
            visible = tuple(d for d in devices if self._matches(d))
        else:
            visible = tuple(devices)
        self.devices.set(visible)
