"""Runtime configuration for the EDID customizer."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Tuple

LOG = logging.getLogger(__name__)

DEFAULT_EDID_PATHS: tuple[Path, ...] = (
    Path("/sys/class/drm/card0-DP-1/edid"),
    Path("/sys/class/drm/card1-DP-1/edid"),
)

DEFAULT_XORG_CONF = Path("/etc/X11/xorg.conf.d/90-custom-edid.conf")
CUSTOM_EDID_NAME = "custom_edid.bin"


class ApplyMethod(Enum):
    XORG = "xorg"
    XRANDR = "xrandr"


@dataclass(frozen=True)
class Settings:
    """Every knob of a pipeline run.

    Defaults target the Apple Pro Display XDR at 6K on ``DP-1``.
    """

    edid_paths: Tuple[Path, ...] = DEFAULT_EDID_PATHS
    edid_path: Optional[Path] = None
    output_path: Optional[Path] = None
    xorg_conf: Path = DEFAULT_XORG_CONF
    width: int = 5120
    height: int = 2880
    refresh: float = 60.0
    reduced_blanking: bool = False
    connector: str = "DP-1"
    identifier: str = "AppleProDisplayXDR"
    apply: ApplyMethod = ApplyMethod.XORG
    inspect: bool = True
    interactive: bool = False
    strict_patch: bool = False
    tool_timeout: int = 30

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        settings = cls()
        overrides: dict[str, object] = {}

        paths = env.get("XDREDID_EDID_PATHS")
        if paths:
            overrides["edid_paths"] = tuple(Path(p) for p in paths.split(os.pathsep) if p)
        if env.get("XDREDID_XORG_CONF"):
            overrides["xorg_conf"] = Path(env["XDREDID_XORG_CONF"])
        if env.get("XDREDID_CONNECTOR"):
            overrides["connector"] = env["XDREDID_CONNECTOR"]
        timeout = env.get("XDREDID_TOOL_TIMEOUT")
        if timeout:
            try:
                overrides["tool_timeout"] = int(timeout)
            except ValueError:
                LOG.warning("Ignoring invalid XDREDID_TOOL_TIMEOUT=%r", timeout)

        return replace(settings, **overrides) if overrides else settings

    def with_overrides(self, **changes: object) -> "Settings":
        """Return a copy with every non-``None`` change applied."""

        applied = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **applied) if applied else self

    def custom_edid_path(self, source: Path) -> Path:
        if self.output_path is not None:
            return self.output_path
        return source.parent / CUSTOM_EDID_NAME


def parse_resolution(value: str) -> Tuple[int, int]:
    """Parse ``WIDTHxHEIGHT`` into two integers."""

    width, sep, height = value.lower().partition("x")
    if not sep:
        raise ValueError(f"Resolution must look like 5120x2880, got {value!r}")
    return int(width), int(height)


__all__ = [
    "ApplyMethod",
    "CUSTOM_EDID_NAME",
    "DEFAULT_EDID_PATHS",
    "DEFAULT_XORG_CONF",
    "Settings",
    "parse_resolution",
]
