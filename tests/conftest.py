from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import pytest

from xdredid import tools
from xdredid.edid import ANCHOR

CVT_OUTPUT = (
    "# 5120x2880 59.98 Hz (CVT) hsync: 178.82 kHz; pclk: 1276.50 MHz\n"
    'Modeline "5120x2880_60.00"  1276.50  5120 5560 6128 7136  2880 2883 2888 2982 -hsync +vsync\n'
)


@dataclass
class FakeTools:
    """Canned subprocess outputs keyed by executable name."""

    outputs: Dict[str, str] = field(default_factory=dict)
    failures: Dict[str, int] = field(default_factory=dict)
    missing: set = field(default_factory=set)
    calls: List[List[str]] = field(default_factory=list)

    def which(self, name: str):
        return None if name in self.missing else f"/usr/bin/{name}"

    def run(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        name = cmd[0]
        if name in self.failures:
            return subprocess.CompletedProcess(cmd, self.failures[name], "", f"{name}: boom\n")
        return subprocess.CompletedProcess(cmd, 0, self.outputs.get(name, ""), "")

    def commands(self, name: str) -> List[List[str]]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def fake_tools(monkeypatch) -> FakeTools:
    fake = FakeTools(outputs={"edid-decode": "Block 0, Base EDID:\n  EDID Structure Version & Revision: 1.4\n", "cvt": CVT_OUTPUT})
    monkeypatch.setattr(tools.shutil, "which", fake.which)
    monkeypatch.setattr(tools.subprocess, "run", fake.run)
    return fake


@pytest.fixture
def edid_blob() -> bytes:
    blob = bytearray(range(128))
    blob[0:8] = ANCHOR
    return bytes(blob)


@pytest.fixture
def edid_source(tmp_path: Path, edid_blob: bytes) -> Path:
    source = tmp_path / "card0-DP-1" / "edid"
    source.parent.mkdir()
    source.write_bytes(edid_blob)
    return source
