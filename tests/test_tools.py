from __future__ import annotations

import subprocess

import pytest

from xdredid import tools
from xdredid.errors import ModelineError


@pytest.mark.parametrize(
    "text, expected",
    [
        ("CustomMode 193.25 5120 5368 5448 5680 2880 2883 2893 2937", "CustomMode"),
        ('"5120x2880_60.00"  1276.50  5120 5560 6128 7136', "5120x2880_60.00"),
    ],
)
def test_modeline_name_is_first_field(text, expected):
    assert tools.Modeline(text).name == expected


def test_modeline_from_cvt_uses_last_line_and_strips_keyword():
    output = "# comment line\n\nModeline \"A\" 1.00 1 2 3 4 5 6 7 8 +hsync\n\n"
    modeline = tools.Modeline.from_cvt_output(output)
    assert modeline.text == '"A" 1.00 1 2 3 4 5 6 7 8 +hsync'
    assert modeline.timings[0] == "1.00"


def test_modeline_from_bare_line():
    modeline = tools.Modeline.from_cvt_output("CustomMode 193.25 5120 5368 5448 5680 2880 2883 2893 2937\n")
    assert modeline.name == "CustomMode"


@pytest.mark.parametrize("output", ["", "\n  \n", "Modeline\n"])
def test_modeline_from_empty_output(output):
    with pytest.raises(ModelineError):
        tools.Modeline.from_cvt_output(output)


def test_run_tool_returns_result(fake_tools):
    result = tools.run_tool(["edid-decode", "/tmp/edid"])
    assert result.ok
    assert result.command == ["edid-decode", "/tmp/edid"]
    assert "Base EDID" in result.stdout


def test_run_tool_raises_on_failure(fake_tools):
    fake_tools.failures["xrandr"] = 1
    with pytest.raises(tools.ToolError) as excinfo:
        tools.run_tool(["xrandr", "--addmode", "DP-1", "X"])
    assert excinfo.value.result.returncode == 1
    assert "boom" in str(excinfo.value)


def test_run_tool_raises_when_binary_missing(fake_tools):
    fake_tools.missing.add("cvt")
    with pytest.raises(tools.ToolError, match="not found"):
        tools.generate_modeline(5120, 2880, 60)
    assert fake_tools.calls == []


def test_run_tool_timeout(monkeypatch, fake_tools):
    def _timeout(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(tools.subprocess, "run", _timeout)
    with pytest.raises(tools.ToolError, match="timed out"):
        tools.run_tool(["edid-decode", "x"], timeout=3)


def test_generate_modeline_arguments(fake_tools):
    modeline = tools.generate_modeline(5120, 2880, 60.0, reduced_blanking=True)
    assert fake_tools.commands("cvt") == [["cvt", "-r", "5120", "2880", "60"]]
    assert modeline.name == "5120x2880_60.00"


def test_register_mode_runs_three_xrandr_calls(fake_tools):
    modeline = tools.Modeline("CustomMode 193.25 5120 5368 5448 5680 2880 2883 2893 2937")
    tools.register_mode(modeline, "DP-1")
    assert fake_tools.commands("xrandr") == [
        ["xrandr", "--newmode", "CustomMode", "193.25", "5120", "5368", "5448", "5680", "2880", "2883", "2893", "2937"],
        ["xrandr", "--addmode", "DP-1", "CustomMode"],
        ["xrandr", "--output", "DP-1", "--mode", "CustomMode"],
    ]


def test_register_mode_stops_at_first_failure(fake_tools):
    fake_tools.failures["xrandr"] = 1
    with pytest.raises(tools.ToolError):
        tools.register_mode(tools.Modeline("M 1 2 3"), "DP-1")
    assert len(fake_tools.commands("xrandr")) == 1
