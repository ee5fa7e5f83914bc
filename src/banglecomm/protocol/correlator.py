"""Single-slot correlation between an issued command and its response frame."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..exceptions import ProtocolViolationError
from ..models.commands import Command

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PendingCommand:
    """A command awaiting its response frame.

    The future fires exactly once: with the decoded result, or with the
    error that ended the command.
    """

    command: Command
    future: asyncio.Future[Any]

    def resolve(self, result: Any) -> None:
        if not self.future.done():
            self.future.set_result(result)

    def fail(self, exc: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(exc)


class CommandCorrelator:
    """Holds at most one pending command.

    The sender fills the slot with issue(); the receiver empties it with
    take() when the end marker arrives. Both run on the same event loop and
    never await between checking and updating the slot.

    A command given up after its message was fully sent still gets its
    frame from the watch later. abandon() records it so that frame is
    dropped instead of being taken for the next command's response.
    """

    def __init__(self) -> None:
        self._pending: PendingCommand | None = None
        self._abandoned = 0

    @property
    def current(self) -> Command | None:
        """Command currently awaiting a response, if any."""
        return self._pending.command if self._pending else None

    @property
    def is_idle(self) -> bool:
        return self._pending is None

    @property
    def abandoned(self) -> int:
        """Number of late frames still expected from abandoned commands."""
        return self._abandoned

    def issue(self, command: Command) -> asyncio.Future[Any]:
        """Record ``command`` as pending and return its completion future.

        Raises:
            ProtocolViolationError: If another command is still pending
        """
        if self._pending is not None:
            raise ProtocolViolationError(
                f"Cannot issue {command.describe()!r}: "
                f"{self._pending.command.describe()!r} is still pending"
            )
        future = asyncio.get_running_loop().create_future()
        self._pending = PendingCommand(command, future)
        _LOGGER.debug("Pending command: %s", command.describe())
        return future

    def take(self) -> PendingCommand | None:
        """Remove and return the pending command."""
        pending, self._pending = self._pending, None
        return pending

    def discard(self, future: asyncio.Future[Any]) -> None:
        """Clear the slot if it still belongs to ``future``."""
        if self._pending is not None and self._pending.future is future:
            _LOGGER.debug("Discarding pending %s", self._pending.command.describe())
            self._pending = None

    def fail(self, exc: BaseException) -> bool:
        """Fail and clear the pending command.

        Returns:
            True if a command was pending
        """
        pending = self.take()
        if pending is None:
            return False
        pending.fail(exc)
        return True

    def abandon(self, future: asyncio.Future[Any]) -> None:
        """Clear the slot for ``future`` and expect its frame to arrive late."""
        if self._pending is not None and self._pending.future is future:
            _LOGGER.debug("Abandoning pending %s", self._pending.command.describe())
            self._pending = None
            self._abandoned += 1

    def drop_abandoned(self) -> bool:
        """Account for one late frame.

        Returns:
            True if the frame belonged to an abandoned command
        """
        if not self._abandoned:
            return False
        self._abandoned -= 1
        return True

    def reset(self) -> None:
        """Forget abandoned commands (the link was re-established)."""
        self._abandoned = 0
