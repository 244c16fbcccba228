"""Command line entry point for the EDID customizer."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

import gi

gi.require_version("Gio", "2.0")

from gi.repository import Gio, GLib

from . import __version__
from .errors import XdrEdidError
from .pipeline import EdidCustomizer, check_privileges
from .settings import ApplyMethod, Settings, parse_resolution

_LOGGER = logging.getLogger("xdredid")

_STRING = GLib.VariantType.new("s")
_DOUBLE = GLib.VariantType.new("d")

# long name, short name, argument type, description, argument description
_OPTIONS: tuple[tuple[str, str, GLib.OptionArg, str, Optional[str]], ...] = (
    ("version", "v", GLib.OptionArg.NONE, "Print application version and exit", None),
    ("verbose", "", GLib.OptionArg.NONE, "Log every external command", None),
    ("edid-path", "e", GLib.OptionArg.STRING, "Read the EDID from PATH instead of searching", "PATH"),
    ("output", "o", GLib.OptionArg.STRING, "Write the patched EDID to PATH", "PATH"),
    ("xorg-conf", "c", GLib.OptionArg.STRING, "X11 configuration file to append to", "PATH"),
    ("resolution", "r", GLib.OptionArg.STRING, "Target resolution", "WIDTHxHEIGHT"),
    ("refresh", "f", GLib.OptionArg.DOUBLE, "Target refresh rate in Hz", "HZ"),
    ("reduced-blanking", "", GLib.OptionArg.NONE, "Ask cvt for reduced blanking timings", None),
    ("connector", "", GLib.OptionArg.STRING, "xrandr output name", "NAME"),
    ("identifier", "", GLib.OptionArg.STRING, "Monitor section identifier", "NAME"),
    ("apply", "a", GLib.OptionArg.STRING, "How to apply the mode: xorg or xrandr", "METHOD"),
    ("no-inspect", "", GLib.OptionArg.NONE, "Skip the edid-decode report", None),
    ("interactive", "i", GLib.OptionArg.NONE, "Prompt for the EDID path when none is found", None),
    ("strict", "", GLib.OptionArg.NONE, "Fail when the EDID cannot be patched", None),
)


def _lookup_string(options: GLib.VariantDict, name: str) -> Optional[str]:
    value = options.lookup_value(name, _STRING)
    return value.get_string() if value is not None else None


def settings_from_options(options: GLib.VariantDict, base: Settings) -> Settings:
    """Overlay the parsed command line on ``base``."""

    changes: dict[str, object] = {}

    for option, key in (("edid-path", "edid_path"), ("output", "output_path"), ("xorg-conf", "xorg_conf")):
        raw = _lookup_string(options, option)
        if raw:
            changes[key] = Path(raw).expanduser()

    resolution = _lookup_string(options, "resolution")
    if resolution:
        changes["width"], changes["height"] = parse_resolution(resolution)

    refresh = options.lookup_value("refresh", _DOUBLE)
    if refresh is not None:
        changes["refresh"] = refresh.get_double()

    for option, key in (("connector", "connector"), ("identifier", "identifier")):
        raw = _lookup_string(options, option)
        if raw:
            changes[key] = raw

    method = _lookup_string(options, "apply")
    if method:
        try:
            changes["apply"] = ApplyMethod(method.lower())
        except ValueError:
            raise ValueError(f"Unknown apply method {method!r}; expected xorg or xrandr") from None

    if options.contains("reduced-blanking"):
        changes["reduced_blanking"] = True
    if options.contains("no-inspect"):
        changes["inspect"] = False
    if options.contains("interactive"):
        changes["interactive"] = True
    if options.contains("strict"):
        changes["strict_patch"] = True

    return base.with_overrides(**changes)


class XdrEdidApplication(Gio.Application):
    """Headless ``Gio.Application`` that runs one pipeline per invocation."""

    def __init__(self, geteuid: Callable[[], int] = os.geteuid) -> None:
        super().__init__(
            application_id="io.github.xdredid.Customizer",
            flags=Gio.ApplicationFlags.HANDLES_COMMAND_LINE | Gio.ApplicationFlags.NON_UNIQUE,
        )
        for long_name, short_name, arg, description, arg_description in _OPTIONS:
            self.add_main_option(
                long_name,
                ord(short_name) if short_name else 0,
                GLib.OptionFlags.NONE,
                arg,
                description,
                arg_description,
            )
        self._geteuid = geteuid
        self.connect("command-line", self._on_command_line)

    def _on_command_line(self, _app: Gio.Application, command_line: Gio.ApplicationCommandLine) -> int:
        options = command_line.get_options_dict()
        if options.contains("version"):
            print(f"xdr-edid {__version__}")
            return 0
        if options.contains("verbose"):
            logging.getLogger().setLevel(logging.DEBUG)

        try:
            settings = settings_from_options(options, Settings.from_environ())
        except ValueError as err:
            _LOGGER.error("%s", err)
            return 1

        error = check_privileges(self._geteuid)
        if error is not None:
            _LOGGER.error("%s", error)
            return 1

        try:
            report = EdidCustomizer(settings).run()
        except XdrEdidError as err:
            _LOGGER.error("%s", err)
            return 1

        if report.config is not None:
            print(f"Custom EDID configured in {report.config}. Restart Xorg or reboot for changes to take effect.")
        else:
            print("Custom EDID applied!")
        return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    app = XdrEdidApplication()
    return app.run(list(argv) if argv is not None else sys.argv)


__all__ = ["XdrEdidApplication", "main", "settings_from_options"]
