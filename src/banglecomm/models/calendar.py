"""Calendar event model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CalendarEvent:
    """One upcoming event pushed to the watch calendar.

    Attributes:
        summary: Event title
        location: Optional location, shown as the event description
        timestamp: Start time in seconds since the epoch
    """

    summary: str
    location: str | None
    timestamp: int
