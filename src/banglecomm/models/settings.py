"""Link tuning settings."""

from __future__ import annotations

from dataclasses import dataclass


def _check_timeout(name: str, value: float | None) -> None:
    if value is not None and value <= 0:
        raise ValueError(f"{name} must be positive or None, got {value}")


@dataclass(frozen=True, slots=True)
class LinkSettings:
    """Timeouts and retry policy for one session.

    Attributes:
        scan_timeout: Seconds to scan for advertisements
        connect_timeout: Seconds per connection attempt
        max_attempts: Connection and pairing attempts
        use_services_cache: Reuse cached GATT services on reconnect
        response_timeout: Seconds of silence tolerated while awaiting a
            response frame (None = forever)
        pause_timeout: Seconds a paused send may stall (None = forever)
        write_with_response: Use acknowledged GATT writes
    """

    scan_timeout: float = 10.0
    connect_timeout: float = 10.0
    max_attempts: int = 4
    use_services_cache: bool = True
    response_timeout: float | None = 30.0
    pause_timeout: float | None = 30.0
    write_with_response: bool = True

    def __post_init__(self) -> None:
        if self.scan_timeout <= 0:
            raise ValueError(f"scan_timeout must be positive, got {self.scan_timeout}")
        if self.connect_timeout <= 0:
            raise ValueError(
                f"connect_timeout must be positive, got {self.connect_timeout}"
            )
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        _check_timeout("response_timeout", self.response_timeout)
        _check_timeout("pause_timeout", self.pause_timeout)
