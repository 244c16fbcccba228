"""Helpers for the external tools the pipeline shells out to.

``edid-decode`` is used for display only, ``cvt`` synthesizes the modeline and
``xrandr`` registers a mode on the running X server.  Every invocation goes
through :func:`run_tool`, which raises :class:`ToolError` instead of letting a
failed command hand empty output to the next step.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from .errors import ModelineError, XdrEdidError

LOG = logging.getLogger(__name__)

_DEF_TIMEOUT = 30


@dataclass(slots=True)
class ToolResult:
    """Exit status and captured streams of one external command."""

    command: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ToolError(XdrEdidError):
    """Raised when an external tool is missing, times out or fails."""

    def __init__(self, message: str, result: Optional[ToolResult] = None) -> None:
        super().__init__(message)
        self.result = result


@dataclass(slots=True)
class Modeline:
    """A modeline as X11 config and ``xrandr --newmode`` expect it.

    ``text`` excludes the leading ``Modeline`` keyword, so it starts with the
    mode name followed by the timing fields.
    """

    text: str

    @property
    def name(self) -> str:
        fields = self.text.split()
        if not fields:
            return ""
        return fields[0].strip('"')

    @property
    def timings(self) -> List[str]:
        return self.text.split()[1:]

    @classmethod
    def from_cvt_output(cls, output: str) -> "Modeline":
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        if not lines:
            raise ModelineError("cvt produced no output")
        last = lines[-1]
        parts = last.split(None, 1)
        if parts[0].lower() == "modeline":
            last = parts[1] if len(parts) > 1 else ""
        if not last:
            raise ModelineError(f"Unable to parse modeline from cvt output: {output!r}")
        return cls(text=" ".join(last.split()))

    def __str__(self) -> str:
        return self.text


def _ensure_binary(name: str) -> None:
    if shutil.which(name) is None:
        raise ToolError(f"{name} executable not found. Install the package providing '{name}'.")


def run_tool(args: Iterable[str], timeout: int = _DEF_TIMEOUT) -> ToolResult:
    """Run ``args`` and return its result, raising :class:`ToolError` on failure."""

    cmd = [str(arg) for arg in args]
    _ensure_binary(cmd[0])
    LOG.debug("Running command: %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise ToolError(f"{cmd[0]} timed out after {timeout}s") from exc

    result = ToolResult(command=cmd, returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
    if not result.ok:
        message = result.stderr.strip() or result.stdout.strip() or f"{cmd[0]} failed"
        raise ToolError(f"{cmd[0]} exited with status {result.returncode}: {message}", result)
    return result


def decode_edid(path: Path, timeout: int = _DEF_TIMEOUT) -> str:
    """Return the human readable ``edid-decode`` report for ``path``."""

    return run_tool(["edid-decode", path], timeout=timeout).stdout


def generate_modeline(
    width: int,
    height: int,
    refresh: float,
    reduced_blanking: bool = False,
    timeout: int = _DEF_TIMEOUT,
) -> Modeline:
    args = ["cvt"]
    if reduced_blanking:
        args.append("-r")
    args.extend([str(width), str(height), f"{refresh:g}"])
    output = run_tool(args, timeout=timeout).stdout
    return Modeline.from_cvt_output(output)


def register_mode(modeline: Modeline, connector: str, timeout: int = _DEF_TIMEOUT) -> None:
    """Define, attach and activate ``modeline`` on the running X server."""

    name = modeline.name
    run_tool(["xrandr", "--newmode", name, *modeline.timings], timeout=timeout)
    run_tool(["xrandr", "--addmode", connector, name], timeout=timeout)
    run_tool(["xrandr", "--output", connector, "--mode", name], timeout=timeout)


__all__ = [
    "Modeline",
    "ToolError",
    "ToolResult",
    "decode_edid",
    "generate_modeline",
    "register_mode",
    "run_tool",
]
