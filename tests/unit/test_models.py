"""Test command and settings models."""

from __future__ import annotations

import pytest

from banglecomm.models import (
    CalendarEvent,
    Download,
    LinkSettings,
    ListFiles,
    Remove,
    Run,
    SetClock,
    SyncCalendar,
    Upload,
    WriteRaw,
    is_interactive,
)


class TestLinkSettings:
    def test_defaults(self):
        settings = LinkSettings()
        assert settings.response_timeout == 30.0
        assert settings.max_attempts == 4

    def test_none_waits_forever(self):
        settings = LinkSettings(response_timeout=None, pause_timeout=None)
        assert settings.response_timeout is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"scan_timeout": 0},
            {"connect_timeout": -1},
            {"max_attempts": 0},
            {"response_timeout": 0},
            {"pause_timeout": -0.5},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            LinkSettings(**kwargs)


class TestCommands:
    @pytest.mark.parametrize(
        ("command", "description"),
        [
            (ListFiles(), "ls"),
            (Upload("app.js", b"abc"), "put app.js (3 bytes)"),
            (Download("app.js"), "get app.js"),
            (Remove("app.js"), "rm app.js"),
            (Run("1", name="boot.js"), "run boot.js"),
            (Run("1"), "run <script>"),
            (WriteRaw("1+1"), "write '1+1'"),
            (SetClock(), "sync-clock"),
            (SyncCalendar((CalendarEvent("a", None, 1),)), "sync-calendar (1 events)"),
        ],
    )
    def test_describe(self, command, description):
        assert command.describe() == description

    def test_interactive_kinds(self):
        assert is_interactive(Run("x"))
        assert is_interactive(WriteRaw("x"))
        assert not is_interactive(ListFiles())
        assert not is_interactive(Download("a"))
        assert not is_interactive(None)

    def test_upload_repr_hides_payload(self):
        assert "data" not in repr(Upload("a", b"\x00" * 10))
