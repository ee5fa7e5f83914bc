"""BLE connection management."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..exceptions import BLEConnectionError, BLETimeoutError, TransportError
from ..protocol import (
    SERVICE_UUID,
    UART_RX_CHAR_UUID,
    UART_TX_CHAR_UUID,
    WRITE_CHUNK_SIZE,
)
from .flow import FlowController

if TYPE_CHECKING:
    from bleak import BleakClient
    from bleak.backends.characteristic import BleakGATTCharacteristic

    from ..discovery import DeviceLocator

_LOGGER = logging.getLogger(__name__)


class BLEConnection:
    """Manages the UART-over-GATT link to the watch.

    Features:
    - Discovery, connection and pairing delegated to a DeviceLocator
    - XON/XOFF filtering of every notification before it is queued
    - Chunked writes gated by the flow controller
    - Context manager for automatic cleanup
    """

    def __init__(
            self,
            locator: DeviceLocator,
            write_with_response: bool = True,
    ):
        """Initialize BLE connection manager.

        Args:
            locator: Finds, connects and pairs the watch
            write_with_response: Wait for write confirmation (default: True)
        """
        self.locator = locator
        self.write_with_response = write_with_response
        self.flow = FlowController()

        self._client: BleakClient | None = None
        self._notification_queue: asyncio.Queue[bytes] = asyncio.Queue()
        self._write_characteristic: BleakGATTCharacteristic | None = None
        self._notify_characteristic: BleakGATTCharacteristic | None = None
        self._disconnect_callbacks: list[Callable[[], None]] = []

    async def __aenter__(self) -> BLEConnection:
        """Connect to device (context manager entry)."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Disconnect from device (context manager exit)."""
        await self.disconnect()

    @property
    def address(self) -> str | None:
        return self._client.address if self._client else None

    def add_disconnect_callback(self, callback: Callable[[], None]) -> None:
        """Register a callback fired when the link drops."""
        self._disconnect_callbacks.append(callback)

    async def connect(self) -> None:
        """Locate the watch and open the UART channels.

        Raises:
            BLEConnectionError: If connection or service discovery fails
            BLETimeoutError: If connection times out
        """
        if self._client and self._client.is_connected:
            return  # Already connected

        self._reset_link_state()
        self._client = await self.locator.locate(self._on_disconnected)
        try:
            await self._setup_uart()
        except Exception:
            await self.disconnect()
            raise

    async def disconnect(self) -> None:
        """Disconnect from device."""
        if self._client and self._client.is_connected:
            try:
                _LOGGER.debug("Disconnecting from %s", self._client.address)
                await self._client.disconnect()
            except Exception as e:
                _LOGGER.warning("Error during disconnect: %s", e)
        self._client = None
        self._write_characteristic = None
        self._notify_characteristic = None

    def _reset_link_state(self) -> None:
        """Forget notifications and flow state left over from a previous link."""
        while not self._notification_queue.empty():
            self._notification_queue.get_nowait()
        self.flow.resume()

    def _on_disconnected(self, client: BleakClient) -> None:
        _LOGGER.info("Disconnected from %s", client.address)
        for callback in self._disconnect_callbacks:
            callback()

    async def _setup_uart(self) -> None:
        """Find the UART characteristics and start notifications.

        Raises:
            BLEConnectionError: If service/characteristic not found
        """
        if not self._client or not self._client.is_connected:
            raise BLEConnectionError("Not connected")

        service = self._client.services.get_service(SERVICE_UUID)
        if not service:
            raise BLEConnectionError(f"Service {SERVICE_UUID} not found")

        self._write_characteristic = service.get_characteristic(UART_RX_CHAR_UUID)
        self._notify_characteristic = service.get_characteristic(UART_TX_CHAR_UUID)
        if not self._write_characteristic or not self._notify_characteristic:
            raise BLEConnectionError("UART characteristics not found")

        try:
            await self._client.start_notify(
                self._notify_characteristic,
                self._notification_callback,
            )
        except Exception as e:
            raise TransportError(f"Failed to start notifications: {e}") from e

        _LOGGER.debug("Notifications started")

    def _notification_callback(self, sender, data: bytearray) -> None:
        """Handle incoming BLE notifications.

        Flow-control bytes are consumed here, before anything else sees
        the buffer.
        """
        payload = self.flow.note_control_bytes(bytes(data))
        if payload:
            self._notification_queue.put_nowait(payload)

    async def write_command(self, data: bytes) -> None:
        """Write one chunk to the watch.

        Raises:
            BLEConnectionError: If not connected
            TransportError: If the write fails
        """
        if not self._client or not self._client.is_connected:
            raise BLEConnectionError("Not connected")

        if not self._write_characteristic:
            raise BLEConnectionError("UART not set up")

        try:
            await self._client.write_gatt_char(
                self._write_characteristic,
                data,
                response=self.write_with_response,
            )
        except Exception as e:
            raise TransportError(f"Write failed: {e}") from e

    async def write_chunked(
            self,
            data: bytes,
            pause_timeout: float | None = None,
    ) -> None:
        """Write ``data`` in WRITE_CHUNK_SIZE pieces, honoring XOFF.

        Args:
            data: Complete message
            pause_timeout: Max seconds to stay paused before each chunk

        Raises:
            TransportError: If a write fails
            BLETimeoutError: If the watch stays paused too long
        """
        total = len(data)
        for offset in range(0, total, WRITE_CHUNK_SIZE):
            await self.flow.wait_resumed(pause_timeout)
            await self.write_command(data[offset:offset + WRITE_CHUNK_SIZE])
        _LOGGER.debug("Sent %d bytes in %d chunks", total, -(-total // WRITE_CHUNK_SIZE))

    async def read_notification(self, timeout: float | None = None) -> bytes:
        """Read the next notification buffer (flow control already removed).

        Args:
            timeout: Read timeout in seconds (default: wait forever)

        Raises:
            BLETimeoutError: If nothing arrived within timeout
        """
        try:
            return await asyncio.wait_for(
                self._notification_queue.get(),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise BLETimeoutError(
                f"No notification received within {timeout}s"
            ) from e

    @property
    def is_connected(self) -> bool:
        """Check if currently connected to device."""
        return self._client is not None and self._client.is_connected
