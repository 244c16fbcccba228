"""The ordered patch-and-apply pipeline."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from . import edid, tools, xorg
from .errors import EdidNotFoundError, PrivilegeError
from .settings import ApplyMethod, Settings

LOG = logging.getLogger(__name__)


def check_privileges(geteuid: Callable[[], int] = os.geteuid) -> Optional[PrivilegeError]:
    """Return a :class:`PrivilegeError` unless running as the superuser."""

    if geteuid() != 0:
        return PrivilegeError("Please run this program with root privileges (sudo).")
    return None


def find_edid_file(candidates: Iterable[Path]) -> Optional[Path]:
    for path in candidates:
        if path.exists():
            return path
    return None


@dataclass(slots=True)
class RunReport:
    """What a completed run produced."""

    source: Path
    custom_edid: Path
    patch: edid.PatchResult
    modeline: tools.Modeline
    config: Optional[Path] = None
    backup: Optional[Path] = None


class EdidCustomizer:
    """Drives a single customization run.

    ``prompt`` and ``echo`` are the interactive input and display hooks;
    they default to :func:`input` and :func:`print`.
    """

    def __init__(
        self,
        settings: Settings,
        prompt: Callable[[str], str] = input,
        echo: Callable[[str], None] = print,
    ) -> None:
        self.settings = settings
        self._prompt = prompt
        self._echo = echo

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def locate_source(self) -> Path:
        manual = self.settings.edid_path
        if manual is not None:
            if not manual.exists():
                raise EdidNotFoundError(f"EDID file not found: {manual}")
            return manual

        found = find_edid_file(self.settings.edid_paths)
        if found is not None:
            LOG.info("Using EDID source %s", found)
            return found

        searched = ", ".join(str(path) for path in self.settings.edid_paths) or "<none>"
        if not self.settings.interactive:
            raise EdidNotFoundError(f"EDID file not found in default locations: {searched}")

        self._echo("EDID file not found in default locations.")
        answer = self._prompt("Please provide the full path to the existing EDID file: ").strip()
        if not answer:
            raise EdidNotFoundError("No EDID file path given")
        path = Path(answer).expanduser()
        if not path.exists():
            raise EdidNotFoundError(f"EDID file not found: {path}")
        return path

    def inspect(self, source: Path) -> Optional[str]:
        """Print the ``edid-decode`` report; a failure here is only a warning."""

        try:
            report = tools.decode_edid(source, timeout=self.settings.tool_timeout)
        except tools.ToolError as err:
            LOG.warning("Skipping EDID inspection: %s", err)
            return None
        self._echo(f"Existing EDID ({source}):\n{report.rstrip()}")
        return report

    def patch(self, source: Path) -> edid.PatchResult:
        blob = edid.read_edid(source)
        self._echo(f"Existing EDID bytes:\n{edid.bytes_to_hex_block(blob)}")
        result = edid.patch_edid(blob)
        if self.settings.strict_patch:
            edid.require_applied(result)
        if result.applied:
            LOG.info("Patched %d bytes at offset %d", edid.WINDOW_SIZE, result.offset)
        else:
            LOG.warning("EDID header preamble not found in %s; EDID left unchanged", source)
        self._echo(f"Modified EDID bytes:\n{edid.bytes_to_hex_block(result.data)}")
        return result

    def persist(self, source: Path, result: edid.PatchResult) -> Path:
        return edid.write_edid(self.settings.custom_edid_path(source), result.data)

    def synthesize(self) -> tools.Modeline:
        s = self.settings
        modeline = tools.generate_modeline(
            s.width,
            s.height,
            s.refresh,
            reduced_blanking=s.reduced_blanking,
            timeout=s.tool_timeout,
        )
        self._echo(f"Modeline: {modeline}")
        return modeline

    def apply(self, report: RunReport) -> RunReport:
        s = self.settings
        if s.apply is ApplyMethod.XRANDR:
            tools.register_mode(report.modeline, s.connector, timeout=s.tool_timeout)
            LOG.info("Mode %s activated on %s", report.modeline.name, s.connector)
            return report

        stanza = xorg.render_stanza(report.custom_edid, report.modeline, identifier=s.identifier)
        report.backup = xorg.append_stanza(s.xorg_conf, stanza)
        report.config = s.xorg_conf
        return report

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def run(self) -> RunReport:
        source = self.locate_source()
        if self.settings.inspect:
            self.inspect(source)
        result = self.patch(source)
        custom = self.persist(source, result)
        modeline = self.synthesize()
        report = RunReport(source=source, custom_edid=custom, patch=result, modeline=modeline)
        return self.apply(report)


__all__ = [
    "EdidCustomizer",
    "RunReport",
    "check_privileges",
    "find_edid_file",
]
