"""Rendering and persisting the X11 ``Monitor`` stanza."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from .errors import ConfigWriteError, StanzaValueError
from .tools import Modeline

LOG = logging.getLogger(__name__)

STANZA_TEMPLATE = """\
Section "Monitor"
    Identifier "{identifier}"
    Option "CustomEDID" "{edid_path}"
    Modeline {modeline}
    Option "PreferredMode" "{preferred}"
EndSection
"""


def render_stanza(edid_path: Path, modeline: Modeline, identifier: str = "AppleProDisplayXDR") -> str:
    """Fill in the ``Monitor`` section template.

    Quoted fields cannot carry a double quote, so such values are rejected.
    """

    for label, value in (("EDID path", str(edid_path)), ("Identifier", identifier), ("Mode name", modeline.name)):
        if '"' in value:
            raise StanzaValueError(f"{label} {value!r} contains a double quote")
    return STANZA_TEMPLATE.format(
        identifier=identifier,
        edid_path=edid_path,
        modeline=modeline.text,
        preferred=modeline.name,
    )


def next_backup_path(conf: Path) -> Path:
    """Return the first unused backup name: ``.bak`` then ``.bak.1``, ``.bak.2``..."""

    candidate = conf.with_name(conf.name + ".bak")
    index = 1
    while candidate.exists():
        candidate = conf.with_name(f"{conf.name}.bak.{index}")
        index += 1
    return candidate


def backup_config(conf: Path) -> Optional[Path]:
    if not conf.exists():
        return None
    backup = next_backup_path(conf)
    shutil.copy2(conf, backup)
    LOG.info("Backed up %s to %s", conf, backup)
    return backup


def _separator(conf: Path) -> bytes:
    # Only the final byte matters; the file may not be valid UTF-8.
    with conf.open("rb") as handle:
        if handle.seek(0, os.SEEK_END) == 0:
            return b""
        handle.seek(-1, os.SEEK_END)
        return b"\n" if handle.read(1) == b"\n" else b"\n\n"


def append_stanza(conf: Path, stanza: str) -> Optional[Path]:
    """Back up ``conf`` if present, then append ``stanza`` to it.

    Returns the backup path, or ``None`` when the file did not exist yet.
    """

    try:
        conf.parent.mkdir(parents=True, exist_ok=True)
        backup = backup_config(conf)
        separator = _separator(conf) if backup is not None else b""
        with conf.open("ab") as handle:
            handle.write(separator + stanza.encode("utf-8"))
    except OSError as err:
        raise ConfigWriteError.from_os_error(conf, err) from err
    LOG.info("Appended Monitor section to %s", conf)
    return backup


__all__ = [
    "STANZA_TEMPLATE",
    "append_stanza",
    "backup_config",
    "next_backup_path",
    "render_stanza",
]
