"""Script builders for the Espruino REPL protocol.

Every command is a snippet of JavaScript. Statement lines start with
ECHO_PREFIX so the REPL does not echo them back, and every line the script
prints on purpose carries the same prefix so it can be told apart from REPL
noise. A trailing END_TRIGGER makes the watch print END_TOKEN once all prior
statements have run.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Iterable

from ..exceptions import EmptyFileError, FilenameTooLongError
from ..models.calendar import CalendarEvent
from ..models.commands import (
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

# Nordic UART service. RX/TX are named from the watch's point of view.
SERVICE_UUID = "6e400001-b5a3-f393-e0a9-e50e24dcca9e"
UART_RX_CHAR_UUID = "6e400002-b5a3-f393-e0a9-e50e24dcca9e"  # we write here
UART_TX_CHAR_UUID = "6e400003-b5a3-f393-e0a9-e50e24dcca9e"  # we get notified here

# Chunking constants
WRITE_CHUNK_SIZE = 16  # Bytes per GATT write
UPLOAD_CHUNK_SIZE = 1024  # File bytes per Storage.write statement
MAX_FILENAME_LENGTH = 28

# Flow control
XON = 0x11
XOFF = 0x13

ECHO_PREFIX = "\x10"
END_TOKEN = "8210409291035902"
END_TRIGGER = f"\n{ECHO_PREFIX};console.log('{END_TOKEN}');\n"

CALENDAR_FILE = "android.calendar.json"

# Escaped form of ECHO_PREFIX inside generated JS string literals
_JS_PREFIX = '"\\x10"'


def _js_string(text: str) -> str:
    """Render text as a JS string literal (quotes, backslashes, controls escaped)."""
    return json.dumps(text)


def _statement(code: str) -> str:
    return f"{ECHO_PREFIX}{code}"


def _check_filename(name: str) -> None:
    if len(name) > MAX_FILENAME_LENGTH:
        raise FilenameTooLongError(
            f"File name {name!r} is {len(name)} characters "
            f"(max {MAX_FILENAME_LENGTH})"
        )


def build_list_command() -> str:
    """Build script printing every stored file name, one per line."""
    return _statement(
        'require("Storage").list().forEach(function(f){'
        f"console.log({_JS_PREFIX}+f);}});"
    )


def build_upload_command(name: str, data: bytes) -> str:
    """Build script writing ``data`` to storage file ``name``.

    Args:
        name: Storage file name (max MAX_FILENAME_LENGTH characters)
        data: File content

    Returns:
        One Storage.write statement per UPLOAD_CHUNK_SIZE bytes

    Format:
        require("Storage").write(name, [b0,b1,...], 0, total_size);
        require("Storage").write(name, [...], offset);
        - Each statement addresses its own offset, so a transfer cut short
          never corrupts regions already written.

    Raises:
        FilenameTooLongError: If name is too long
        EmptyFileError: If data is empty
    """
    _check_filename(name)
    if not data:
        raise EmptyFileError(f"Refusing to upload empty file {name!r}")

    js_name = _js_string(name)
    statements = []
    for offset in range(0, len(data), UPLOAD_CHUNK_SIZE):
        chunk = data[offset:offset + UPLOAD_CHUNK_SIZE]
        values = ",".join(str(b) for b in chunk)
        if offset == 0:
            args = f"{js_name},[{values}],0,{len(data)}"
        else:
            args = f"{js_name},[{values}],{offset}"
        statements.append(_statement(f'require("Storage").write({args});'))
    return "\n".join(statements)


def build_download_command(name: str) -> str:
    """Build script printing each byte of storage file ``name`` as a decimal line."""
    return _statement(
        f'new Uint8Array(require("Storage").readArrayBuffer({_js_string(name)}))'
        f".forEach(function(c){{console.log({_JS_PREFIX}+c);}});"
    )


def build_remove_command(name: str) -> str:
    """Build script erasing storage file ``name``."""
    return _statement(f'require("Storage").erase({_js_string(name)});')


def build_run_command(source: str) -> str:
    """Build script sending each source line as its own statement line."""
    return "\n".join(_statement(line) for line in source.splitlines())


def build_write_command(text: str) -> str:
    """Return caller-supplied code unchanged."""
    return text


def build_set_clock_command(now: float) -> str:
    """Build script setting the watch clock.

    Args:
        now: Current time in seconds since the epoch
    """
    return _statement(f"setTime({int(now)});")


def _render_event(event: CalendarEvent) -> str:
    fields = [f"title:{_js_string(event.summary)}"]
    if event.location is not None:
        fields.append(f"description: {_js_string(event.location)}")
    fields.append(f"timestamp: {int(event.timestamp)}")
    return _statement(f"e.push({{{', '.join(fields)}}});")


def build_sync_calendar_command(events: Iterable[CalendarEvent]) -> str:
    """Build script replacing the watch calendar with ``events``.

    Events are pushed in input order, then written in one bulk call.
    Existing calendar entries are discarded.
    """
    lines = [_statement("var e=[];")]
    lines.extend(_render_event(event) for event in events)
    lines.append(
        _statement(f'require("Storage").writeJSON({_js_string(CALENDAR_FILE)}, e);')
    )
    return "\n".join(lines)


def encode_command(command: Command, clock: Callable[[], float] = time.time) -> str:
    """Render a command as the script to transmit.

    Args:
        command: Command to encode
        clock: Time source, read at encode time for SetClock

    Raises:
        CommandError: If a local precondition fails
    """
    if isinstance(command, ListFiles):
        return build_list_command()
    if isinstance(command, Upload):
        return build_upload_command(command.name, command.data)
    if isinstance(command, Download):
        _check_filename(command.name)
        return build_download_command(command.name)
    if isinstance(command, Remove):
        return build_remove_command(command.name)
    if isinstance(command, Run):
        return build_run_command(command.source)
    if isinstance(command, WriteRaw):
        return build_write_command(command.text)
    if isinstance(command, SetClock):
        return build_set_clock_command(clock())
    if isinstance(command, SyncCalendar):
        return build_sync_calendar_command(command.events)
    raise TypeError(f"Unknown command type: {type(command).__name__}")


def build_message(script: str) -> bytes:
    """Append the end-of-response trigger and encode for transmission."""
    return (script + END_TRIGGER).encode("utf-8")
