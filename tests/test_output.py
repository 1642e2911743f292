"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline and quiet mode
- JSON and plain rendering of data and tables
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from assemblist.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)
from assemblist import output as output_module


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("assemblist.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("assemblist.output._is_tty", lambda: True)


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_forces_plain(self, tty):
        assert OutputManager(format=OutputFormat.AUTO, no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, non_tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_terminal(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


class TestStreams:
    def test_data_goes_to_stdout(self, capsys):
        OutputManager(format=OutputFormat.JSON).format_data({"archives": ["a.zip"]})
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"archives": ["a.zip"]}
        assert captured.err == ""

    def test_diagnostics_go_to_stderr(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.info("reading descriptors")
        mgr.success("Built a.zip")
        mgr.warning("site directory missing")
        mgr.error("boom")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.splitlines() == [
            "reading descriptors",
            "Built a.zip",
            "Warning: site directory missing",
            "Error: boom",
        ]

    def test_quiet_suppresses_info_but_not_errors(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden")
        mgr.error("shown")
        assert capsys.readouterr().err == "Error: shown\n"

    def test_debug_only_when_verbose(self, capsys):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("hidden")
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("shown")
        assert capsys.readouterr().err == "[debug] shown\n"


class TestRendering:
    def test_plain_dict(self, capsys):
        OutputManager(format=OutputFormat.PLAIN).format_data({"dry_run": False})
        assert capsys.readouterr().out == "dry_run\tFalse\n"

    def test_plain_list_of_dicts(self, capsys):
        OutputManager(format=OutputFormat.PLAIN).format_data([{"a": 1, "b": 2}, "x"])
        assert capsys.readouterr().out == "1\t2\nx\n"

    def test_json_table(self, capsys):
        OutputManager(format=OutputFormat.JSON).print_table(
            ["Path", "Source"], [["demo/LICENSE", "/p/LICENSE"]]
        )
        assert json.loads(capsys.readouterr().out) == [
            {"Path": "demo/LICENSE", "Source": "/p/LICENSE"}
        ]

    def test_plain_table(self, capsys):
        OutputManager(format=OutputFormat.PLAIN).print_table(["Hint", "Origin"], [["plexus", "built-in"]])
        assert capsys.readouterr().out == "Hint\tOrigin\nplexus\tbuilt-in\n"


class TestGlobalInstance:
    def test_lazy_default(self):
        reset_output()
        assert get_output() is get_output()

    def test_set_and_convenience_functions(self, capsys):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("data")
        output_module.error("oops")
        captured = capsys.readouterr()
        assert captured.out == "data\n"
        assert captured.err == "Error: oops\n"
