"""XON/XOFF flow control for the outbound chunk stream."""

from __future__ import annotations

import asyncio
import logging

from ..exceptions import BLETimeoutError
from ..protocol.commands import XOFF, XON

_LOGGER = logging.getLogger(__name__)

_CONTROL_BYTES = bytes([XON, XOFF])


class FlowController:
    """Tracks whether the watch asked us to stop sending.

    The watch sends XOFF (0x13) when its input buffer fills and XON (0x11)
    when it has drained. Both bytes may appear anywhere in a notification,
    including between payload bytes.
    """

    def __init__(self) -> None:
        self._resumed = asyncio.Event()
        self._resumed.set()

    @property
    def paused(self) -> bool:
        return not self._resumed.is_set()

    def pause(self) -> None:
        if not self.paused:
            _LOGGER.debug("XOFF: pausing upload")
        self._resumed.clear()

    def resume(self) -> None:
        if self.paused:
            _LOGGER.debug("XON: resuming upload")
        self._resumed.set()

    def note_control_bytes(self, data: bytes) -> bytes:
        """Strip control bytes from ``data`` and apply the last one seen.

        Args:
            data: Raw notification buffer

        Returns:
            Buffer with all XON/XOFF bytes removed
        """
        last = None
        for byte in data:
            if byte in _CONTROL_BYTES:
                last = byte
        if last is None:
            return data

        if last == XON:
            self.resume()
        else:
            self.pause()
        return data.translate(None, _CONTROL_BYTES)

    async def wait_resumed(self, timeout: float | None = None) -> None:
        """Wait until sending is allowed.

        Raises:
            BLETimeoutError: If still paused after ``timeout`` seconds
        """
        if not self.paused:
            return
        try:
            await asyncio.wait_for(self._resumed.wait(), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise BLETimeoutError(
                f"Device kept the link paused for more than {timeout}s"
            ) from e
