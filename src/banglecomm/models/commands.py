"""Logical commands issued to the watch.

Each command type names one remote operation. While a command is in flight
its type also selects how the next completed response frame is handled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from .calendar import CalendarEvent


@dataclass(frozen=True, slots=True)
class ListFiles:
    """List the names of all stored files."""

    def describe(self) -> str:
        return "ls"


@dataclass(frozen=True, slots=True)
class Upload:
    """Write ``data`` to storage file ``name``."""

    name: str
    data: bytes = field(repr=False)

    def describe(self) -> str:
        return f"put {self.name} ({len(self.data)} bytes)"


@dataclass(frozen=True, slots=True)
class Download:
    """Read storage file ``name`` back as bytes."""

    name: str

    def describe(self) -> str:
        return f"get {self.name}"


@dataclass(frozen=True, slots=True)
class Remove:
    """Erase storage file ``name``."""

    name: str

    def describe(self) -> str:
        return f"rm {self.name}"


@dataclass(frozen=True, slots=True)
class Run:
    """Execute script source statement by statement, with live output."""

    source: str = field(repr=False)
    name: str | None = None

    def describe(self) -> str:
        return f"run {self.name or '<script>'}"


@dataclass(frozen=True, slots=True)
class WriteRaw:
    """Send caller-supplied code verbatim."""

    text: str

    def describe(self) -> str:
        return f"write {self.text!r}"


@dataclass(frozen=True, slots=True)
class SetClock:
    """Set the watch clock to the host's current time."""

    def describe(self) -> str:
        return "sync-clock"


@dataclass(frozen=True, slots=True)
class SyncCalendar:
    """Replace the watch calendar with ``events``, in order."""

    events: tuple[CalendarEvent, ...]

    def describe(self) -> str:
        return f"sync-calendar ({len(self.events)} events)"


Command = Union[
    ListFiles, Upload, Download, Remove, Run, WriteRaw, SetClock, SyncCalendar
]

# Commands whose output is shown to the user as it arrives.
INTERACTIVE_COMMANDS = (Run, WriteRaw)


def is_interactive(command: Command | None) -> bool:
    """Return True if output for this command is passed through live."""
    return isinstance(command, INTERACTIVE_COMMANDS)
