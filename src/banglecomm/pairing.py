"""Pairing agents answering the questions asked while bonding with the watch."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .console import read_line

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice

_LOGGER = logging.getLogger(__name__)

PASSKEY_DIGITS = 6


def _device_label(device: BLEDevice) -> str:
    return f"{device.name or 'Unknown'} ({device.address})"


@runtime_checkable
class PairingAgent(Protocol):
    """Answers pairing prompts on behalf of the operator."""

    async def confirm(self, device: BLEDevice) -> bool:
        """Return True to pair with ``device``."""
        ...

    async def confirm_passkey(self, device: BLEDevice, passkey: int) -> bool:
        """Return True if ``passkey`` matches the one shown on the device."""
        ...

    async def request_passkey(self, device: BLEDevice) -> int | None:
        """Return the passkey shown on the device, or None to reject."""
        ...

    async def display_passkey(self, device: BLEDevice, passkey: int) -> None:
        """Show ``passkey`` so it can be entered on the device."""
        ...


class AutoAcceptPairingAgent:
    """Headless agent: accepts every confirmation, cannot supply a passkey."""

    async def confirm(self, device: BLEDevice) -> bool:
        _LOGGER.debug("Auto-accepting pairing with %s", _device_label(device))
        return True

    async def confirm_passkey(self, device: BLEDevice, passkey: int) -> bool:
        return True

    async def request_passkey(self, device: BLEDevice) -> int | None:
        _LOGGER.warning(
            "Passkey requested by %s but no operator is available",
            _device_label(device),
        )
        return None

    async def display_passkey(self, device: BLEDevice, passkey: int) -> None:
        _LOGGER.info("Passkey for %s: %06d", _device_label(device), passkey)


def _is_yes(answer: str) -> bool:
    return answer.strip() in ("", "y", "Y")


def parse_passkey(answer: str) -> int | None:
    """Parse a 6-digit passkey, returning None if malformed."""
    answer = answer.strip()
    if len(answer) != PASSKEY_DIGITS or not (answer.isascii() and answer.isdigit()):
        return None
    return int(answer)


class StdioPairingAgent:
    """Interactive agent prompting on the terminal.

    Prompts block on stdin, so they run in a worker thread to keep the
    event loop (and the BLE stack callbacks) running.
    """

    async def _ask(self, prompt: str) -> str:
        try:
            return await read_line(prompt)
        except EOFError:
            return "n"

    async def confirm(self, device: BLEDevice) -> bool:
        answer = await self._ask(
            f"Do you want to pair with {_device_label(device)}? (Y/n) "
        )
        return _is_yes(answer)

    async def confirm_passkey(self, device: BLEDevice, passkey: int) -> bool:
        answer = await self._ask(
            f'Is the passkey "{passkey:06d}" displayed on '
            f"{_device_label(device)}? (Y/n) "
        )
        return _is_yes(answer)

    async def request_passkey(self, device: BLEDevice) -> int | None:
        answer = await self._ask(
            f"Please enter the {PASSKEY_DIGITS}-digit passkey for "
            f"{_device_label(device)}: "
        )
        return parse_passkey(answer)

    async def display_passkey(self, device: BLEDevice, passkey: int) -> None:
        print(f'The passkey is "{passkey:06d}" for {_device_label(device)}.')
