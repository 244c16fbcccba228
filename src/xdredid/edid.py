"""Placeholder EDID patch.

The patch overwrites the 16 bytes that follow the EDID header preamble with a
fixed sequence.  It does not understand EDID fields: the adopting team has to
supply real field semantics before this can edit timings for real.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from textwrap import wrap
from typing import Optional

from .errors import EdidReadError, EdidWriteError, PatchError

LOG = logging.getLogger(__name__)

ANCHOR = b"\x00\xff\xff\xff\xff\xff\xff\x00"
WINDOW_SIZE = 16

# Vendor/product/serial/date/version block of an Apple XDR.
REPLACEMENT = bytes.fromhex("06 10 2e ae 00 00 00 00 01 20 01 04 b5 46 27 78")

_PATTERN = re.compile(re.escape(ANCHOR) + b".{%d}" % WINDOW_SIZE, re.DOTALL)


@dataclass(slots=True)
class PatchResult:
    data: bytes
    applied: bool
    offset: Optional[int] = None


def patch_edid(blob: bytes, replacement: bytes = REPLACEMENT) -> PatchResult:
    """Overwrite the window after the first anchor occurrence.

    A blob without the anchor, or one too short to hold the whole window, is
    returned unchanged with ``applied`` set to ``False``.
    """

    if len(replacement) != WINDOW_SIZE:
        raise ValueError(f"Replacement must be {WINDOW_SIZE} bytes, got {len(replacement)}")
    match = _PATTERN.search(blob)
    if match is None:
        return PatchResult(data=bytes(blob), applied=False)
    offset = match.start() + len(ANCHOR)
    data = blob[:offset] + replacement + blob[offset + WINDOW_SIZE:]
    return PatchResult(data=bytes(data), applied=True, offset=offset)


def read_edid(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as err:
        raise EdidReadError.from_os_error(path, err) from err


def write_edid(path: Path, data: bytes) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as err:
        raise EdidWriteError.from_os_error(path, err) from err
    LOG.info("Custom EDID written to %s", path)
    return path


def require_applied(result: PatchResult) -> PatchResult:
    if not result.applied:
        raise PatchError("EDID header preamble not found; refusing to write an unpatched EDID")
    return result


def bytes_to_hex_block(byte_array: bytes, width: int = 16) -> str:
    hex_str = " ".join(format(byte, "02x") for byte in byte_array)
    return "\n".join(wrap(hex_str, width=width * 3)).upper()


__all__ = [
    "ANCHOR",
    "PatchResult",
    "REPLACEMENT",
    "WINDOW_SIZE",
    "bytes_to_hex_block",
    "patch_edid",
    "read_edid",
    "require_applied",
    "write_edid",
]
