"""Reading and writing outline files."""

from __future__ import annotations

import codecs
import os
import tempfile
from pathlib import Path

__all__ = ["read_text", "write_text"]

_UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


def read_text(path: Path | str) -> str:
    """Return the file's text without its BOM and with ``\\n`` line endings.

    Outline files are expected to be UTF-8. UTF-16 files are accepted when they
    carry a BOM, and bytes that are not valid UTF-8 fall back to Latin-1 so a
    stray legacy file still opens.
    """

    raw = Path(path).read_bytes()
    if raw.startswith(_UTF16_BOMS):
        text = raw.decode("utf-16")
    else:
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = raw.decode("latin-1")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def write_text(path: Path | str, content: str) -> Path:
    """Write ``content`` as UTF-8 with ``\\n`` endings, replacing the file in one step.

    A crash mid-write leaves the previous file intact; the temporary sibling is
    removed on failure.
    """

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    descriptor, temp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(descriptor, "wb") as handle:
            handle.write(content.replace("\r\n", "\n").encode("utf-8"))
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, target)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
    return target
