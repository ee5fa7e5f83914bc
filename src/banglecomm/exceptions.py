"""Exception hierarchy for banglecomm."""

from __future__ import annotations


class BangleCommError(Exception):
    """Base exception for all banglecomm errors."""


class BLEConnectionError(BangleCommError):
    """Failed to find, connect to or talk with the device."""


class AdapterUnavailableError(BLEConnectionError):
    """Bluetooth adapter could not be initialized."""


class DeviceNotFoundError(BLEConnectionError):
    """Scan completed without a matching advertisement."""


class PairingRejectedError(BLEConnectionError):
    """Pairing was refused by the pairing agent."""


class TransportError(BLEConnectionError):
    """A GATT write or notification failed on an established link."""


class BLETimeoutError(BangleCommError):
    """A BLE operation did not complete in time."""


class ProtocolError(BangleCommError):
    """The device response stream did not follow the protocol."""


class ProtocolViolationError(ProtocolError):
    """Link is desynchronized (e.g. a frame completed with no pending command)."""


class InvalidResponseError(ProtocolError):
    """A completed frame could not be decoded."""


class MalformedByteStreamError(InvalidResponseError):
    """A download frame contained a token that is not a byte value."""


class CommandError(BangleCommError):
    """A command was rejected locally before anything was transmitted."""


class FilenameTooLongError(CommandError):
    """Storage file name exceeds the device limit."""


class EmptyFileError(CommandError):
    """Upload content is empty."""
