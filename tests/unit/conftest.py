"""Shared fakes for device-level tests."""

from __future__ import annotations

import asyncio
import json
import re

import pytest
import pytest_asyncio

from banglecomm import BangleDevice
from banglecomm.protocol import ECHO_PREFIX, END_TOKEN

FAKE_NOW = 1_700_000_000.0

_WRITE_RE = re.compile(
    r'require\("Storage"\)\.write\(("(?:[^"\\]|\\.)*"),\[([0-9,]*)\],(\d+)(?:,(\d+))?\);'
)
_READ_RE = re.compile(r'readArrayBuffer\(("(?:[^"\\]|\\.)*")\)')
_ERASE_RE = re.compile(r'erase\(("(?:[^"\\]|\\.)*")\)')


class FakeWatchLink:
    """In-memory stand-in for BLEConnection with a tiny Storage emulation.

    Every message written is interpreted, then answered with prefixed output
    lines, the end marker and trailing REPL noise, split into small
    notification buffers.
    """

    NOTIFY_SIZE = 20

    def __init__(self) -> None:
        self.storage: dict[str, bytearray] = {}
        self.messages: list[bytes] = []
        self.answer = True
        self.override_lines: list[str] | None = None
        self.is_connected = True
        self.disconnected = False
        self._queue: asyncio.Queue[bytes] = asyncio.Queue()

    @property
    def scripts(self) -> list[str]:
        return [m.decode("utf-8") for m in self.messages]

    async def write_chunked(self, data: bytes, pause_timeout: float | None = None) -> None:
        self.messages.append(data)
        if not self.answer:
            return
        lines = self.override_lines
        if lines is None:
            lines = self._interpret(data.decode("utf-8"))
        self.push("".join(f"{line}\r\n" for line in lines))
        self.push(f"{END_TOKEN}\r\n=undefined\r\n>")

    def push(self, text: str) -> None:
        raw = text.encode("utf-8")
        for i in range(0, len(raw), self.NOTIFY_SIZE):
            self._queue.put_nowait(raw[i:i + self.NOTIFY_SIZE])

    async def read_notification(self, timeout: float | None = None) -> bytes:
        return await self._queue.get()

    async def disconnect(self) -> None:
        self.disconnected = True
        self.is_connected = False

    def _interpret(self, script: str) -> list[str]:
        out: list[str] = []
        for match in _WRITE_RE.finditer(script):
            name = json.loads(match.group(1))
            values = [int(v) for v in match.group(2).split(",") if v]
            offset = int(match.group(3))
            buffer = self.storage.setdefault(name, bytearray())
            if match.group(4) is not None:
                buffer[:] = bytes(int(match.group(4)))
            buffer[offset:offset + len(values)] = bytes(values)
        if 'require("Storage").list()' in script:
            out.extend(f"{ECHO_PREFIX}{name}" for name in self.storage)
        for match in _READ_RE.finditer(script):
            data = self.storage.get(json.loads(match.group(1)), b"")
            out.extend(f"{ECHO_PREFIX}{b}" for b in data)
        for match in _ERASE_RE.finditer(script):
            self.storage.pop(json.loads(match.group(1)), None)
        return out


@pytest.fixture
def link() -> FakeWatchLink:
    return FakeWatchLink()


@pytest.fixture
def output() -> list[str]:
    return []


@pytest_asyncio.fixture
async def watch(link: FakeWatchLink, output: list[str]):
    device = BangleDevice(output=output.append, clock=lambda: FAKE_NOW)
    device._connection = link  # Inject fake connection
    device.start_receiver()
    yield device
    await device.disconnect()
