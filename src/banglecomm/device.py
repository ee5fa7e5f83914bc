"""Main Bangle.js device class."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from .discovery import DEFAULT_NAME_PREFIX, DeviceLocator
from .exceptions import BLEConnectionError, BLETimeoutError, ProtocolViolationError
from .files import save_file
from .models.calendar import CalendarEvent
from .models.commands import (
    Command,
    Download,
    ListFiles,
    Remove,
    Run,
    SetClock,
    SyncCalendar,
    Upload,
    WriteRaw,
)
from .models.settings import LinkSettings
from .pairing import PairingAgent
from .protocol import CommandCorrelator, FrameAssembler, build_message, encode_command
from .transport import BLEConnection

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice

_LOGGER = logging.getLogger(__name__)


class BangleDevice:
    """Bangle.js watch reached through its Espruino REPL.

    Main API for running commands on the watch. A background receiver task
    drains notifications into the frame assembler while commands are issued
    one at a time.

    Usage:
        async with BangleDevice() as watch:
            print(await watch.list_files())

        async with BangleDevice("AA:BB:CC:DD:EE:FF") as watch:
            await watch.upload("hello.js", b"print('hi')")
    """

    def __init__(
            self,
            address: str | None = None,
            ble_device: BLEDevice | None = None,
            name_prefix: str | None = DEFAULT_NAME_PREFIX,
            pairing_agent: PairingAgent | None = None,
            settings: LinkSettings | None = None,
            output: Callable[[str], None] = print,
            clock: Callable[[], float] = time.time,
    ):
        """Initialize Bangle.js device.

        Args:
            address: Optional device address (default: first watch found)
            ble_device: Optional BLEDevice from an earlier scan
            name_prefix: Advertised name prefix to accept (None = any name)
            pairing_agent: Agent consulted when pairing (None = never pair)
            settings: Timeouts and retry policy
            output: Sink for live output of run/write commands
            clock: Time source for clock sync
        """
        self.settings = settings or LinkSettings()
        self._connection = BLEConnection(
            DeviceLocator(
                address=address,
                ble_device=ble_device,
                name_prefix=name_prefix,
                pairing_agent=pairing_agent,
                settings=self.settings,
            ),
            write_with_response=self.settings.write_with_response,
        )
        self._connection.add_disconnect_callback(self._on_disconnected)
        self._clock = clock
        self._correlator = CommandCorrelator()
        self._assembler = FrameAssembler(self._correlator, output)
        self._command_lock = asyncio.Lock()
        self._receiver: asyncio.Task[None] | None = None
        self._receiver_error: BaseException | None = None
        self._notifications_seen = 0

    async def __aenter__(self) -> BangleDevice:
        """Connect and start receiving."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Stop receiving and disconnect."""
        await self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self._connection.is_connected

    @property
    def pending_command(self) -> Command | None:
        """Command currently awaiting its response frame."""
        return self._correlator.current

    async def connect(self) -> None:
        """Connect to the watch and start the receiver task."""
        await self._connection.connect()
        self.start_receiver()
        _LOGGER.info("Connected to %s", self._connection.address)

    def start_receiver(self) -> None:
        """Start draining notifications (no-op if already running)."""
        if self._receiver is None or self._receiver.done():
            self._receiver_error = None
            self._correlator.reset()
            self._assembler.reset()
            self._receiver = asyncio.create_task(self._receive_loop())

    async def disconnect(self) -> None:
        """Stop the receiver, fail any pending command and disconnect."""
        if self._receiver is not None:
            self._receiver.cancel()
            try:
                await self._receiver
            except asyncio.CancelledError:
                pass
            self._receiver = None
        self._correlator.fail(BLEConnectionError("Disconnected"))
        await self._connection.disconnect()

    def _on_disconnected(self) -> None:
        if self._correlator.fail(BLEConnectionError("Device disconnected")):
            _LOGGER.warning("Link dropped while a command was pending")

    async def _receive_loop(self) -> None:
        """Feed notifications to the assembler, strictly in arrival order."""
        while True:
            data = await self._connection.read_notification()
            self._notifications_seen += 1
            try:
                self._assembler.feed(data)
            except ProtocolViolationError as e:
                _LOGGER.error("Receiver stopped: %s", e)
                self._receiver_error = e
                self._correlator.fail(e)
                return

    async def execute(self, command: Command) -> Any:
        """Send one command and wait for its response frame.

        Args:
            command: Command to run

        Returns:
            Decoded result (file names for ListFiles, bytes for Download,
            None otherwise)

        Raises:
            CommandError: If a local precondition fails (nothing is sent)
            TransportError: If a write fails
            BLETimeoutError: If the watch stays paused or never answers
            InvalidResponseError: If the response cannot be decoded
            ProtocolViolationError: If the link lost frame synchronization
        """
        async with self._command_lock:
            if self._receiver_error is not None:
                raise ProtocolViolationError(
                    f"Link desynchronized, reconnect required: {self._receiver_error}"
                ) from self._receiver_error

            # SetClock reads the clock here, right before sending
            script = encode_command(command, self._clock)
            message = build_message(script)
            _LOGGER.debug("Executing %s (%d bytes)", command.describe(), len(message))

            future = self._correlator.issue(command)
            sent = False
            try:
                await self._connection.write_chunked(
                    message, self.settings.pause_timeout
                )
                sent = True
                return await self._wait_response(command, future)
            finally:
                if sent and not future.done():
                    # The watch still answers; its frame must not be
                    # mistaken for the next command's
                    self._correlator.abandon(future)
                else:
                    self._correlator.discard(future)
                if future.done() and not future.cancelled():
                    future.exception()  # A disconnect may have failed it mid-write

    async def _wait_response(self, command: Command, future: asyncio.Future[Any]) -> Any:
        """Wait for the response frame while the watch keeps talking.

        ``response_timeout`` bounds the silence between notifications, not
        the whole response, so long downloads complete.

        Raises:
            BLETimeoutError: If no notification arrives for response_timeout
        """
        timeout = self.settings.response_timeout
        while True:
            seen = self._notifications_seen
            try:
                return await asyncio.wait_for(asyncio.shield(future), timeout=timeout)
            except asyncio.TimeoutError as e:
                if self._notifications_seen == seen:
                    raise BLETimeoutError(
                        f"No response to {command.describe()!r} within {timeout}s"
                    ) from e
                _LOGGER.debug("Still receiving %s", command.describe())

    async def list_files(self) -> list[str]:
        """List stored file names."""
        return await self.execute(ListFiles())

    async def upload(self, name: str, data: bytes) -> None:
        """Write ``data`` to storage file ``name``.

        Raises:
            FilenameTooLongError: If name exceeds 28 characters
            EmptyFileError: If data is empty
        """
        _LOGGER.info("Uploading %s (%d bytes)", name, len(data))
        await self.execute(Upload(name, data))

    async def download(self, name: str) -> bytes:
        """Read storage file ``name``.

        Raises:
            MalformedByteStreamError: If the watch output is not a byte stream
        """
        data = await self.execute(Download(name))
        _LOGGER.info("Downloaded %s (%d bytes)", name, len(data))
        return data

    async def download_to(self, name: str, path: str | os.PathLike[str]) -> int:
        """Download storage file ``name`` and save it locally.

        Nothing is written if the download fails.

        Returns:
            Number of bytes written
        """
        data = await self.download(name)
        save_file(path, data)
        return len(data)

    async def remove(self, name: str) -> None:
        """Erase storage file ``name``."""
        await self.execute(Remove(name))

    async def run(self, source: str, name: str | None = None) -> None:
        """Execute script source, printing its output as it arrives."""
        await self.execute(Run(source, name))

    async def write(self, code: str) -> None:
        """Send code verbatim, printing its output as it arrives."""
        await self.execute(WriteRaw(code))

    async def set_clock(self) -> None:
        """Set the watch clock to the current host time."""
        await self.execute(SetClock())

    async def sync_calendar(self, events: Iterable[CalendarEvent]) -> None:
        """Replace the watch calendar with ``events``."""
        events = tuple(events)
        _LOGGER.info("Syncing %d calendar events", len(events))
        await self.execute(SyncCalendar(events))
