"""Watch discovery, connection and pairing."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError
from bleak_retry_connector import BleakClientWithServiceCache, establish_connection

from .exceptions import (
    AdapterUnavailableError,
    BLEConnectionError,
    BLETimeoutError,
    DeviceNotFoundError,
    PairingRejectedError,
)
from .models.settings import LinkSettings
from .pairing import PairingAgent
from .protocol import SERVICE_UUID

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice
    from bleak.backends.scanner import AdvertisementData

_LOGGER = logging.getLogger(__name__)

DEFAULT_NAME_PREFIX = "Bangle.js"


def _matches(
        advertisement: AdvertisementData,
        device: BLEDevice,
        name_prefix: str | None,
) -> bool:
    uuids = {uuid.lower() for uuid in advertisement.service_uuids}
    if SERVICE_UUID not in uuids:
        return False
    if name_prefix is None:
        return True
    name = advertisement.local_name or device.name or ""
    return name.startswith(name_prefix)


async def discover_devices(
        timeout: float = 10.0,
        name_prefix: str | None = DEFAULT_NAME_PREFIX,
) -> list[BLEDevice]:
    """Scan for watches advertising the UART service.

    Args:
        timeout: Scan duration in seconds (default: 10)
        name_prefix: Required advertised name prefix (None = any name)

    Returns:
        Matching devices in discovery order

    Raises:
        AdapterUnavailableError: If the Bluetooth adapter cannot scan
    """
    try:
        found = await BleakScanner.discover(timeout=timeout, return_adv=True)
    except (BleakError, OSError) as e:
        raise AdapterUnavailableError(f"Bluetooth adapter unavailable: {e}") from e

    return [
        device
        for device, advertisement in found.values()
        if _matches(advertisement, device, name_prefix)
    ]


class DeviceLocator:
    """Finds the watch, connects to it and pairs if required.

    Lookup order:
    - ``ble_device``, when the caller already holds one
    - ``address``, resolved with a targeted scan
    - first advertisement exposing the UART service whose name starts
      with ``name_prefix``
    """

    def __init__(
            self,
            address: str | None = None,
            ble_device: BLEDevice | None = None,
            name_prefix: str | None = DEFAULT_NAME_PREFIX,
            pairing_agent: PairingAgent | None = None,
            settings: LinkSettings | None = None,
    ):
        """Initialize device locator.

        Args:
            address: Optional device address (MAC, or UUID on macOS)
            ble_device: Optional BLEDevice from an earlier scan
            name_prefix: Advertised name prefix to accept (None = any name)
            pairing_agent: Agent asked before pairing (None = never pair)
            settings: Timeouts and retry policy
        """
        self.address = address
        self.ble_device = ble_device
        self.name_prefix = name_prefix
        self.pairing_agent = pairing_agent
        self.settings = settings or LinkSettings()

    async def find_device(self) -> BLEDevice:
        """Resolve the target BLEDevice.

        Raises:
            DeviceNotFoundError: If no matching device was seen
            AdapterUnavailableError: If the adapter cannot scan
        """
        if self.ble_device is not None:
            _LOGGER.debug("Using known device %s", self.ble_device.address)
            return self.ble_device

        timeout = self.settings.scan_timeout
        try:
            if self.address:
                _LOGGER.debug("Scanning for %s", self.address)
                device = await BleakScanner.find_device_by_address(
                    self.address, timeout=timeout
                )
            else:
                _LOGGER.debug(
                    "Scanning for UART service (name prefix %r)", self.name_prefix
                )
                device = await BleakScanner.find_device_by_filter(
                    lambda d, adv: _matches(adv, d, self.name_prefix),
                    timeout=timeout,
                )
        except (BleakError, OSError) as e:
            raise AdapterUnavailableError(f"Bluetooth adapter unavailable: {e}") from e

        if device is None:
            target = self.address or f"name prefix {self.name_prefix!r}"
            raise DeviceNotFoundError(f"No watch found for {target} within {timeout}s")

        _LOGGER.info("Found %s (%s)", device.name, device.address)
        return device

    async def connect(
            self,
            device: BLEDevice,
            disconnected_callback: Callable[[BleakClient], None] | None = None,
    ) -> BleakClient:
        """Connect to ``device`` with retries.

        Raises:
            BLEConnectionError: If connection fails
            BLETimeoutError: If connection times out
        """
        _LOGGER.debug(
            "Connecting to %s with bleak-retry-connector (max_attempts=%d)",
            device.address,
            self.settings.max_attempts,
        )
        try:
            client = await establish_connection(
                client_class=BleakClientWithServiceCache,
                device=device,
                name=device.name or device.address,
                disconnected_callback=disconnected_callback,
                max_attempts=self.settings.max_attempts,
                use_services_cache=self.settings.use_services_cache,
                timeout=self.settings.connect_timeout,
            )
        except asyncio.TimeoutError as e:
            raise BLETimeoutError(
                f"Connection timeout after {self.settings.connect_timeout}s"
            ) from e
        except Exception as e:
            raise BLEConnectionError(f"Failed to connect: {e}") from e

        _LOGGER.debug("Connected to %s", device.address)
        return client

    async def pair(self, client: BleakClient, device: BLEDevice) -> None:
        """Pair with the connected device, asking the agent first.

        Raises:
            PairingRejectedError: If the agent declines
            BLEConnectionError: If pairing keeps failing
        """
        if self.pairing_agent is None:
            return

        for attempt in range(1, self.settings.max_attempts + 1):
            if not await self.pairing_agent.confirm(device):
                raise PairingRejectedError(f"Pairing with {device.address} rejected")
            try:
                await client.pair()
            except NotImplementedError:
                _LOGGER.debug("Backend pairs on demand, skipping explicit pairing")
                return
            except BleakError as e:
                _LOGGER.warning(
                    "Pairing attempt %d/%d failed: %s",
                    attempt,
                    self.settings.max_attempts,
                    e,
                )
                continue
            _LOGGER.info("Paired with %s", device.address)
            return

        raise BLEConnectionError(
            f"Pairing with {device.address} failed after "
            f"{self.settings.max_attempts} attempts"
        )

    async def locate(
            self,
            disconnected_callback: Callable[[BleakClient], None] | None = None,
    ) -> BleakClient:
        """Find, connect and pair. Returns the connected client."""
        device = await self.find_device()
        client = await self.connect(device, disconnected_callback)
        try:
            await self.pair(client, device)
        except Exception:
            await client.disconnect()
            raise
        return client
