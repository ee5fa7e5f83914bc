"""Upcoming events read from iCalendar files."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from icalendar import Calendar

from .models.calendar import CalendarEvent

_LOGGER = logging.getLogger(__name__)

DEFAULT_SUMMARY = "unknown event"


def parse_calendar_events(
        content: bytes | str,
        now: datetime | None = None,
) -> list[CalendarEvent]:
    """Extract events starting strictly after ``now``.

    Args:
        content: iCalendar document
        now: Reference time (default: current time)

    Returns:
        Events in file order. All-day events (date-only DTSTART) are skipped;
        naive start times are read as UTC.

    Raises:
        ValueError: If the document is not a valid calendar
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    calendar = Calendar.from_ical(content)
    events: list[CalendarEvent] = []
    for component in calendar.walk("VEVENT"):
        dtstart = component.get("DTSTART")
        if dtstart is None:
            continue
        start = dtstart.dt
        if not isinstance(start, datetime):
            _LOGGER.debug("Skipping all-day event %s", component.get("SUMMARY"))
            continue
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        if start <= now:
            continue

        summary = component.get("SUMMARY")
        location = component.get("LOCATION")
        events.append(
            CalendarEvent(
                summary=str(summary) if summary is not None else DEFAULT_SUMMARY,
                location=str(location) if location is not None else None,
                timestamp=int(start.timestamp()),
            )
        )

    _LOGGER.debug("Found %d upcoming events", len(events))
    return events


def read_calendar_events(
        path: str | os.PathLike[str],
        now: datetime | None = None,
) -> list[CalendarEvent]:
    """Read upcoming events from an .ics file."""
    return parse_calendar_events(Path(path).read_bytes(), now)
