"""Data models for banglecomm."""

from .calendar import CalendarEvent
from .commands import (
    Command,
    Download,
    ListFiles,
    Remove,
    Run,
    SetClock,
    SyncCalendar,
    Upload,
    WriteRaw,
    is_interactive,
)
from .settings import LinkSettings

__all__ = [
    "CalendarEvent",
    "Command",
    "Download",
    "LinkSettings",
    "ListFiles",
    "Remove",
    "Run",
    "SetClock",
    "SyncCalendar",
    "Upload",
    "WriteRaw",
    "is_interactive",
]
