"""Response frame assembly from the notification stream."""

from __future__ import annotations

import codecs
import logging
from collections.abc import Callable

from ..exceptions import InvalidResponseError, ProtocolViolationError
from ..models.commands import is_interactive
from .commands import ECHO_PREFIX, END_TOKEN
from .correlator import CommandCorrelator
from .responses import decode_response

_LOGGER = logging.getLogger(__name__)

# REPL chatter that is never shown to the user
_NOISE_LINES = frozenset({"", ">", "=undefined"})


def _is_noise(line: str) -> bool:
    return line.strip() in _NOISE_LINES


def _strip_prompt(line: str) -> str:
    """Drop a leading REPL prompt glued to the marker or to prefixed output."""
    body = line.lstrip(">")
    if body == END_TOKEN or body.startswith(ECHO_PREFIX):
        return body
    return line


class FrameAssembler:
    """Assembles line-oriented response frames from notification buffers.

    The watch answers each command with any number of lines followed by a
    line that is exactly END_TOKEN:
    - Interactive commands (Run, WriteRaw): lines are passed to ``output``
      as they arrive
    - Other commands: prefixed lines are collected until END_TOKEN, then
      decoded and handed to the pending command's future

    Frames arrive in the order commands were sent, so while a frame from an
    abandoned command is still expected, lines belong to that frame and are
    dropped.

    Buffers must already have flow-control bytes removed.
    """

    def __init__(
            self,
            correlator: CommandCorrelator,
            output: Callable[[str], None] = print,
    ):
        """Initialize frame assembler.

        Args:
            correlator: Slot holding the command the next frame answers
            output: Sink for live output of interactive commands
        """
        self._correlator = correlator
        self._output = output
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._partial = ""
        self._frame: list[str] = []

    @property
    def frame(self) -> list[str]:
        """Content lines collected so far for the current frame."""
        return list(self._frame)

    def reset(self) -> None:
        """Drop any partial line and frame content."""
        self._decoder.reset()
        self._partial = ""
        self._frame.clear()

    def feed(self, data: bytes) -> None:
        """Process one notification buffer.

        Raises:
            ProtocolViolationError: If END_TOKEN arrives with no pending command
        """
        text = self._partial + self._decoder.decode(data)
        *lines, self._partial = text.split("\n")
        for line in lines:
            self.feed_line(line.rstrip("\r"))

    def feed_line(self, line: str) -> None:
        """Process one complete line (without its terminator)."""
        line = _strip_prompt(line)
        if self._correlator.abandoned:
            if line == END_TOKEN:
                self._correlator.drop_abandoned()
                self._frame.clear()
                _LOGGER.debug("Dropped late frame of an abandoned command")
            return

        if line == END_TOKEN:
            self._complete()
            return

        command = self._correlator.current
        if is_interactive(command):
            if not _is_noise(line):
                self._output(line.removeprefix(ECHO_PREFIX))
            return

        if command is None:
            _LOGGER.debug("Ignoring line with no pending command: %r", line)
        elif line.startswith(ECHO_PREFIX):
            self._frame.append(line[len(ECHO_PREFIX):])

    def _complete(self) -> None:
        pending = self._correlator.take()
        lines, self._frame = self._frame, []
        if pending is None:
            raise ProtocolViolationError(
                "Response frame completed with no pending command"
            )

        _LOGGER.debug(
            "Frame complete for %s (%d lines)",
            pending.command.describe(),
            len(lines),
        )
        try:
            result = decode_response(pending.command, lines)
        except InvalidResponseError as e:
            _LOGGER.debug("Decoding %s failed: %s", pending.command.describe(), e)
            pending.fail(e)
        else:
            pending.resolve(result)
