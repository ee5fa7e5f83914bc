"""Response frame decoding."""

from __future__ import annotations

from collections.abc import Sequence

from ..exceptions import MalformedByteStreamError
from ..models.commands import Command, Download, ListFiles


def decode_list(lines: Sequence[str]) -> list[str]:
    """Parse a file listing frame.

    Args:
        lines: Frame content lines (echo prefix already stripped)

    Returns:
        Stored file names in the order the watch printed them
    """
    return [line for line in lines if line]


def decode_download(lines: Sequence[str]) -> bytes:
    """Parse a download frame of decimal byte values.

    Args:
        lines: Frame content lines (echo prefix already stripped)

    Returns:
        Reassembled file content

    Raises:
        MalformedByteStreamError: If any token is not an integer in 0-255
    """
    result = bytearray()
    for line in lines:
        for token in line.split():
            if not (token.isascii() and token.isdigit()):
                raise MalformedByteStreamError(
                    f"Invalid byte token {token!r} at offset {len(result)}"
                )
            value = int(token)
            if not 0 <= value <= 0xFF:
                raise MalformedByteStreamError(
                    f"Byte value out of range: {value} at offset {len(result)}"
                )
            result.append(value)
    return bytes(result)


def decode_response(command: Command, lines: Sequence[str]) -> list[str] | bytes | None:
    """Decode a completed frame for the command it answers.

    Returns:
        File names for ListFiles, file content for Download, None otherwise

    Raises:
        InvalidResponseError: If the frame cannot be decoded
    """
    if isinstance(command, ListFiles):
        return decode_list(lines)
    if isinstance(command, Download):
        return decode_download(lines)
    return None
