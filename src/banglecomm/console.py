"""Terminal line input that never holds up the event loop or its shutdown."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

_LOGGER = logging.getLogger(__name__)


def _settle(future: asyncio.Future[Any], result: Any, exc: BaseException | None) -> None:
    if future.done():
        return
    if exc is not None:
        future.set_exception(exc)
    else:
        future.set_result(result)


async def read_line(prompt: str = "") -> str:
    """Prompt on the terminal and return the line typed.

    input() blocks until Enter, and only the main thread sees Ctrl-C. The
    read therefore runs in a daemon thread outside the default executor, so
    cancelling the caller (as asyncio.run does on Ctrl-C) returns at once
    and interpreter exit never waits on the terminal.

    Raises:
        EOFError: If stdin is closed (Ctrl-D)
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()

    def read() -> None:
        result, error = None, None
        try:
            result = input(prompt)
        except Exception as e:  # EOFError, OSError
            error = e
        try:
            loop.call_soon_threadsafe(_settle, future, result, error)
        except RuntimeError:
            _LOGGER.debug("Prompt answered after the event loop closed")

    threading.Thread(target=read, name="banglecomm-prompt", daemon=True).start()
    return await future
