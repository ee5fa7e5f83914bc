"""Command line interface to the Bangle.js watch.

Usage:
    banglecomm ls
    banglecomm put app.js
    banglecomm get app.js copy.js
    banglecomm sync-calendar calendar.ics
    banglecomm            # clock sync, then interactive prompt
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import shlex
import sys
from pathlib import Path

from .console import read_line
from .device import BangleDevice
from .discovery import DEFAULT_NAME_PREFIX
from .exceptions import BangleCommError
from .files import read_file, read_source
from .ical import read_calendar_events
from .models.settings import LinkSettings
from .pairing import StdioPairingAgent

try:
    import readline
except ImportError:  # Windows
    readline = None  # type: ignore[assignment]

_LOGGER = logging.getLogger(__name__)

HISTORY_FILE = Path.home() / ".banglecomm_history"
PROMPT = ">> "

# REPL name -> (CLI subcommand, minimum args, maximum args)
REPL_COMMANDS: dict[str, tuple[str, int, int]] = {
    "ls": ("ls", 0, 0),
    "put": ("put", 1, 2),
    "get": ("get", 1, 2),
    "rm": ("rm", 1, 1),
    "run": ("run", 1, 1),
    "write": ("write", 1, 1),
    "clock": ("sync-clock", 0, 0),
    "calendar": ("sync-calendar", 1, 1),
}


class UsageError(ValueError):
    """A REPL line could not be parsed."""


def parse_repl_line(line: str) -> tuple[str, list[str]]:
    """Split a REPL line into a CLI subcommand name and its arguments.

    ``write`` takes the rest of the line verbatim as code.

    Raises:
        UsageError: If the command is unknown or has the wrong arity
    """
    line = line.strip()
    name, _, rest = line.partition(" ")
    if name not in REPL_COMMANDS:
        raise UsageError(
            f"we cannot parse command: {line!r}; available commands are "
            + ", ".join(repr(c) for c in REPL_COMMANDS)
        )
    command, min_args, max_args = REPL_COMMANDS[name]
    if name == "write":
        args = [rest.strip()] if rest.strip() else []
    else:
        args = shlex.split(rest)
    if not min_args <= len(args) <= max_args:
        raise UsageError(f"wrong number of arguments for {name!r}")
    return command, args


async def execute_command(watch: BangleDevice, command: str, args: list[str]) -> None:
    """Run one CLI/REPL command against a connected watch."""
    if command == "ls":
        for name in await watch.list_files():
            print(name)
    elif command == "put":
        local = args[0]
        remote = args[1] if len(args) > 1 else Path(local).name
        await watch.upload(remote, read_file(local))
    elif command == "get":
        remote = args[0]
        local = args[1] if len(args) > 1 else remote
        size = await watch.download_to(remote, local)
        print(f"saved {size} bytes to {local}")
    elif command == "rm":
        await watch.remove(args[0])
    elif command == "run":
        await watch.run(read_source(args[0]), name=args[0])
    elif command == "write":
        await watch.write(args[0])
    elif command == "sync-clock":
        await watch.set_clock()
    elif command == "sync-calendar":
        await watch.sync_calendar(read_calendar_events(args[0]))
    elif command == "disconnect":
        pass  # Link is closed on exit
    else:
        raise UsageError(f"unknown command {command!r}")


def _load_history() -> None:
    if readline is None:
        return
    try:
        readline.read_history_file(HISTORY_FILE)
    except OSError:
        print("No previous history.")


def _save_history() -> None:
    if readline is None:
        return
    try:
        readline.write_history_file(HISTORY_FILE)
    except OSError as e:
        _LOGGER.warning("Could not save history: %s", e)


async def repl(watch: BangleDevice) -> None:
    """Interactive prompt: one command at a time until exit, Ctrl-C or Ctrl-D."""
    _load_history()
    try:
        while True:
            try:
                line = await read_line(PROMPT)
            except EOFError:
                print("CTRL-D")
                break
            except asyncio.CancelledError:
                print("CTRL-C")
                raise

            line = line.strip()
            if not line:
                continue
            if line == "exit":
                break
            try:
                command, args = parse_repl_line(line)
            except UsageError as e:
                print(e)
                continue
            try:
                await execute_command(watch, command, args)
            except (BangleCommError, OSError, ValueError) as e:
                print(f"failed: {line}: {e}", file=sys.stderr)
    finally:
        _save_history()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="banglecomm",
        description="Command line interface to the Bangle.js watch.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Display more information on what's happening for debug purposes.",
    )
    parser.add_argument(
        "-k", "--keep-connected",
        action="store_true",
        help="Don't close connection when exiting.",
    )
    parser.add_argument("--address", help="Watch address (default: first watch found)")
    parser.add_argument(
        "--name",
        default=DEFAULT_NAME_PREFIX,
        help=f"Advertised name prefix to accept. Default: {DEFAULT_NAME_PREFIX}",
    )
    parser.add_argument(
        "--pair",
        action="store_true",
        help="Pair with the watch, confirming on the terminal.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Seconds to wait for each response (0 = forever). Default: 30",
    )

    sub = parser.add_subparsers(dest="command")
    put = sub.add_parser("put", help="Upload a local file")
    put.add_argument("file")
    put.add_argument("remote", nargs="?")
    get = sub.add_parser("get", help="Download a stored file")
    get.add_argument("remote")
    get.add_argument("file", nargs="?")
    sub.add_parser("ls", help="List stored files")
    rm = sub.add_parser("rm", help="Erase a stored file")
    rm.add_argument("remote")
    run = sub.add_parser("run", help="Run a local script, showing its output")
    run.add_argument("file")
    write = sub.add_parser("write", help="Send code verbatim")
    write.add_argument("code")
    sub.add_parser("sync-clock", help="Set the watch clock")
    calendar = sub.add_parser("sync-calendar", help="Replace the watch calendar")
    calendar.add_argument("ics")
    sub.add_parser("disconnect", help="Connect, then disconnect")
    return parser


def _command_args(args: argparse.Namespace) -> list[str]:
    if args.command == "put":
        return [args.file] + ([args.remote] if args.remote else [])
    if args.command == "get":
        return [args.remote] + ([args.file] if args.file else [])
    if args.command == "rm":
        return [args.remote]
    if args.command == "run":
        return [args.file]
    if args.command == "write":
        return [args.code]
    if args.command == "sync-calendar":
        return [args.ics]
    return []


async def async_main(args: argparse.Namespace) -> int:
    settings = LinkSettings(response_timeout=args.timeout or None)
    watch = BangleDevice(
        address=args.address,
        name_prefix=args.name or None,
        pairing_agent=StdioPairingAgent() if args.pair else None,
        settings=settings,
    )
    try:
        await watch.connect()
    except BangleCommError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    command = args.command or "sync-clock"
    try:
        await execute_command(watch, command, _command_args(args))
        if not args.command:
            await repl(watch)
    except (BangleCommError, OSError, ValueError) as e:
        print(f"failed: {command}: {e}", file=sys.stderr)
        return 1
    finally:
        if args.keep_connected:
            _LOGGER.info("Leaving watch connected")
        else:
            print("disconnecting")
            await watch.disconnect()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
