"""Bangle.js BLE client.

  Pure Python package for running commands on a Bangle.js watch through its
  Espruino REPL over the Nordic UART service.
  """

from .device import BangleDevice
from .discovery import DeviceLocator, discover_devices
from .exceptions import (
    AdapterUnavailableError,
    BangleCommError,
    BLEConnectionError,
    BLETimeoutError,
    CommandError,
    DeviceNotFoundError,
    EmptyFileError,
    FilenameTooLongError,
    InvalidResponseError,
    MalformedByteStreamError,
    PairingRejectedError,
    ProtocolError,
    ProtocolViolationError,
    TransportError,
)
from .ical import parse_calendar_events, read_calendar_events
from .models import (
    CalendarEvent,
    Command,
    Download,
    LinkSettings,
    ListFiles,
    Remove,
    Run,
    SetClock,
    SyncCalendar,
    Upload,
    WriteRaw,
)
from .pairing import AutoAcceptPairingAgent, PairingAgent, StdioPairingAgent
from .protocol import SERVICE_UUID, UART_RX_CHAR_UUID, UART_TX_CHAR_UUID

__version__ = "0.1.0"

__all__ = [
    # Main API
    "BangleDevice",
    "DeviceLocator",
    "discover_devices",
    # Exceptions
    "BangleCommError",
    "BLEConnectionError",
    "AdapterUnavailableError",
    "DeviceNotFoundError",
    "PairingRejectedError",
    "TransportError",
    "BLETimeoutError",
    "ProtocolError",
    "ProtocolViolationError",
    "InvalidResponseError",
    "MalformedByteStreamError",
    "CommandError",
    "FilenameTooLongError",
    "EmptyFileError",
    # Commands
    "Command",
    "ListFiles",
    "Upload",
    "Download",
    "Remove",
    "Run",
    "WriteRaw",
    "SetClock",
    "SyncCalendar",
    # Models - Other
    "CalendarEvent",
    "LinkSettings",
    # Pairing
    "PairingAgent",
    "AutoAcceptPairingAgent",
    "StdioPairingAgent",
    # Utilities
    "parse_calendar_events",
    "read_calendar_events",
    # Constants
    "SERVICE_UUID",
    "UART_RX_CHAR_UUID",
    "UART_TX_CHAR_UUID",
]
