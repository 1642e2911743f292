"""Tests for assemblist.formatting.formatter."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write_file

from assemblist.exceptions import FormattingError
from assemblist.formatting.formatter import FileFormatter
from assemblist.models import AssemblerConfig


class TestFileFormatter:
    def test_no_transform_returns_source(self, config: AssemblerConfig) -> None:
        source = config.basedir / "README.txt"
        with FileFormatter(config) as formatter:
            assert formatter.format(source) == source

    def test_filtered_copy(self, config: AssemblerConfig) -> None:
        source = config.basedir / "README.txt"
        with FileFormatter(config) as formatter:
            result = formatter.format(source, filtered=True)
            assert result != source
            assert result.read_text(encoding="utf-8") == "Demo 1.0\n"
        assert source.read_text(encoding="utf-8") == "Demo ${project.version}\n"

    def test_line_ending_conversion(self, config: AssemblerConfig) -> None:
        source = config.basedir / "src" / "main" / "scripts" / "run.sh"
        with FileFormatter(config) as formatter:
            result = formatter.format(source, line_ending="unix")
            assert result.read_bytes() == b"#!/bin/sh\necho run\n"

    def test_unchanged_content_returns_source(self, config: AssemblerConfig) -> None:
        source = config.basedir / "LICENSE"
        with FileFormatter(config) as formatter:
            assert formatter.format(source, filtered=True, line_ending="unix") == source

    def test_binary_passes_through(self, config: AssemblerConfig) -> None:
        source = write_file(config.basedir / "logo.png", b"\x89PNG\r\n\x00${version}")
        with FileFormatter(config) as formatter:
            assert formatter.format(source, filtered=True, line_ending="unix") == source

    def test_temporary_files_removed_on_close(self, config: AssemblerConfig) -> None:
        source = config.basedir / "README.txt"
        formatter = FileFormatter(config)
        result = formatter.format(source, filtered=True)
        assert result.exists()
        assert config.get_temporary_root_directory() in result.parents
        formatter.close()
        assert not result.exists()

    def test_temporary_files_removed_on_error(self, config: AssemblerConfig) -> None:
        source = config.basedir / "README.txt"
        created: list[Path] = []
        with pytest.raises(RuntimeError):
            with FileFormatter(config) as formatter:
                created.append(formatter.format(source, filtered=True))
                raise RuntimeError("boom")
        assert not created[0].exists()

    def test_undecodable_text(self, config: AssemblerConfig) -> None:
        source = write_file(config.basedir / "latin.txt", "caf\xe9\n".encode("latin-1"))
        with FileFormatter(config) as formatter:
            with pytest.raises(FormattingError, match="Cannot decode"):
                formatter.format(source, filtered=True)

    def test_encoding_override(self, config: AssemblerConfig) -> None:
        source = write_file(config.basedir / "latin.txt", "caf\xe9 ${version}\n".encode("latin-1"))
        with FileFormatter(config) as formatter:
            result = formatter.format(source, filtered=True, encoding="latin-1")
            assert result.read_bytes() == "caf\xe9 1.0\n".encode("latin-1")

    def test_illegal_line_ending(self, config: AssemblerConfig) -> None:
        with FileFormatter(config) as formatter:
            with pytest.raises(FormattingError, match="Illegal lineEnding"):
                formatter.format(config.basedir / "LICENSE", line_ending="mac-classic")
