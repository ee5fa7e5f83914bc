"""Espruino REPL protocol over the Nordic UART service."""

from .assembler import FrameAssembler
from .commands import (
    CALENDAR_FILE,
    ECHO_PREFIX,
    END_TOKEN,
    END_TRIGGER,
    MAX_FILENAME_LENGTH,
    SERVICE_UUID,
    UART_RX_CHAR_UUID,
    UART_TX_CHAR_UUID,
    UPLOAD_CHUNK_SIZE,
    WRITE_CHUNK_SIZE,
    XOFF,
    XON,
    build_download_command,
    build_list_command,
    build_message,
    build_remove_command,
    build_run_command,
    build_set_clock_command,
    build_sync_calendar_command,
    build_upload_command,
    build_write_command,
    encode_command,
)
from .correlator import CommandCorrelator, PendingCommand
from .responses import decode_download, decode_list, decode_response

__all__ = [
    "SERVICE_UUID",
    "UART_RX_CHAR_UUID",
    "UART_TX_CHAR_UUID",
    "WRITE_CHUNK_SIZE",
    "UPLOAD_CHUNK_SIZE",
    "MAX_FILENAME_LENGTH",
    "XON",
    "XOFF",
    "ECHO_PREFIX",
    "END_TOKEN",
    "END_TRIGGER",
    "CALENDAR_FILE",
    "build_list_command",
    "build_upload_command",
    "build_download_command",
    "build_remove_command",
    "build_run_command",
    "build_write_command",
    "build_set_clock_command",
    "build_sync_calendar_command",
    "build_message",
    "encode_command",
    "CommandCorrelator",
    "PendingCommand",
    "FrameAssembler",
    "decode_list",
    "decode_download",
    "decode_response",
]
