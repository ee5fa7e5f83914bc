"""Scan for watches, then copy every stored file from the first one.

Usage:
    python examples/backup_storage.py --out backup/
    python examples/backup_storage.py --scan-only
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from banglecomm import BangleDevice, BangleCommError, discover_devices


async def backup(out: Path, scan_only: bool, duration: float) -> int:
    """Copy all stored files into ``out``."""
    print(f"Scanning for {duration:.1f}s...")
    devices = await discover_devices(timeout=duration)
    for device in devices:
        print(f"  {device.name or 'Unknown'} ({device.address})")
    if not devices:
        print("No watch found")
        return 1
    if scan_only:
        return 0

    out.mkdir(parents=True, exist_ok=True)
    saved = 0
    async with BangleDevice(ble_device=devices[0]) as watch:
        for name in await watch.list_files():
            try:
                size = await watch.download_to(name, out / name)
            except BangleCommError as err:
                print(f"  {name}: failed ({err})")
                continue
            saved += 1
            print(f"  {name}: {size} bytes")

    print(f"\nSaved {saved} files to {out}")
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Copy every file stored on a Bangle.js watch."
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=Path("backup"),
        help="Destination directory. Default: backup",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=5.0,
        help="Scan duration in seconds. Default: 5",
    )
    parser.add_argument(
        "--scan-only",
        action="store_true",
        help="List nearby watches without connecting.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    try:
        raise SystemExit(asyncio.run(backup(args.out, args.scan_only, args.duration)))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
