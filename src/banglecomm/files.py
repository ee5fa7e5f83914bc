"""Local file access for uploads, downloads and script runs."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def read_file(path: str | os.PathLike[str]) -> bytes:
    """Read a local file as bytes."""
    return Path(path).read_bytes()


def read_source(path: str | os.PathLike[str]) -> str:
    """Read a local script as UTF-8 text."""
    return Path(path).read_text(encoding="utf-8")


def save_file(path: str | os.PathLike[str], data: bytes) -> None:
    """Write ``data`` to ``path`` atomically.

    Content goes to a temporary sibling first and replaces ``path`` only once
    fully written, so a failure never leaves a truncated file behind.
    """
    target = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, target)
    except BaseException:
        os.unlink(tmp_name)
        raise
