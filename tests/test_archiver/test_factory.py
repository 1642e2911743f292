"""Tests for the format factory and the jar manifest finalizers."""

from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from conftest import write_file

from assemblist.archiver.factory import create_archiver, create_delegate, get_tar_compression, supported_formats
from assemblist.archiver.manifest import build_manifest_attributes, format_manifest
from assemblist.archiver.proxy import AssemblyProxyArchiver
from assemblist.archiver.tar_archiver import TarArchiver, TarCompression
from assemblist.archiver.zip_archiver import MANIFEST_PATH, JarArchiver, WarArchiver, ZipArchiver
from assemblist.archiver.dir_archiver import DirectoryArchiver
from assemblist.exceptions import (
    ArchiveCreationError,
    InvalidConfigurationError,
    NoSuchArchiverError,
    UnknownCompressionError,
)
from assemblist.models import ArchiveConfig, AssemblerConfig, ProjectInfo, TarLongFileMode


class TestTarCompression:
    @pytest.mark.parametrize(
        "fmt, expected",
        [
            ("tar", TarCompression.NONE),
            ("tar.gz", TarCompression.GZIP),
            ("tar.bz2", TarCompression.BZIP2),
            ("tar.xz", TarCompression.XZ),
            ("tgz", TarCompression.GZIP),
            ("tbz2", TarCompression.BZIP2),
            ("txz", TarCompression.XZ),
        ],
    )
    def test_known(self, fmt: str, expected: TarCompression) -> None:
        assert get_tar_compression(fmt) is expected

    def test_unknown_suffix(self) -> None:
        with pytest.raises(UnknownCompressionError, match="Unknown compression format: xyz"):
            get_tar_compression("tar.xyz")

    def test_unknown_compression_is_a_configuration_error(self) -> None:
        assert issubclass(UnknownCompressionError, InvalidConfigurationError)
        assert UnknownCompressionError("x").exit_code == 8


class TestCreateDelegate:
    @pytest.mark.parametrize(
        "fmt, cls",
        [
            ("zip", ZipArchiver),
            ("jar", JarArchiver),
            ("war", WarArchiver),
            ("dir", DirectoryArchiver),
            ("tar.gz", TarArchiver),
        ],
    )
    def test_writer_types(self, config: AssemblerConfig, fmt: str, cls: type) -> None:
        assert isinstance(create_delegate(fmt, config), cls)

    def test_tar_settings(self, project: ProjectInfo) -> None:
        config = AssemblerConfig(project=project, tar_long_file_mode=TarLongFileMode.POSIX)
        archiver = create_delegate("tar.bz2", config)
        assert archiver.compression is TarCompression.BZIP2
        assert archiver.long_file_mode is TarLongFileMode.POSIX

    def test_unknown_format(self, config: AssemblerConfig) -> None:
        with pytest.raises(NoSuchArchiverError, match="Cannot find archiver for format: rar"):
            create_delegate("rar", config)

    def test_supported_formats(self) -> None:
        formats = supported_formats()
        for fmt in ("zip", "jar", "war", "ear", "dir", "tar", "tar.gz", "tgz"):
            assert fmt in formats


class TestCreateArchiver:
    def test_returns_proxy(self, config: AssemblerConfig, tmp_path: Path) -> None:
        archiver = create_archiver("zip", config, dest_file=tmp_path / "a.zip", root_prefix="demo")
        assert isinstance(archiver, AssemblyProxyArchiver)
        assert archiver.dest_file == tmp_path / "a.zip"
        assert archiver.root_prefix == "demo/"
        assert archiver.format == "zip"

    def test_zip_has_no_manifest(self, config: AssemblerConfig, tmp_path: Path) -> None:
        archiver = create_archiver("zip", config, dest_file=tmp_path / "a.zip")
        archiver.add_bytes("a.txt", b"a")
        archiver.create_archive()
        with zipfile.ZipFile(tmp_path / "a.zip") as zf:
            assert zf.namelist() == ["a.txt"]

    def test_jar_gets_manifest_and_metadata(self, config: AssemblerConfig, tmp_path: Path) -> None:
        archiver = create_archiver("jar", config, dest_file=tmp_path / "a.jar")
        archiver.add_bytes("org/example/Main.class", b"\xca\xfe")
        archiver.add_bytes("META-INF/OLD.SF", b"signature")
        archiver.create_archive()

        with zipfile.ZipFile(tmp_path / "a.jar") as zf:
            names = zf.namelist()
            assert names[0] == MANIFEST_PATH
            assert "META-INF/OLD.SF" not in names
            manifest = zf.read(MANIFEST_PATH).decode("utf-8")
            assert "Implementation-Version: 1.0\r\n" in manifest
            assert "Implementation-Vendor-Id: org.example\r\n" in manifest

            base = "META-INF/assemblist/org.example/demo"
            properties = zf.read(f"{base}/project.properties").decode("utf-8")
            assert "artifactId=demo\n" in properties
            document = json.loads(zf.read(f"{base}/project.json"))
            assert document["version"] == "1.0"
            assert document["name"] == "Demo"

    def test_build_metadata_disabled(self, project: ProjectInfo, tmp_path: Path) -> None:
        config = AssemblerConfig(project=project, archive=ArchiveConfig(add_build_metadata=False))
        archiver = create_archiver("jar", config, dest_file=tmp_path / "a.jar")
        archiver.create_archive()
        with zipfile.ZipFile(tmp_path / "a.jar") as zf:
            assert zf.namelist() == [MANIFEST_PATH]

    def test_manifest_file_used_verbatim(self, project: ProjectInfo, tmp_path: Path) -> None:
        write_file(project.basedir / "MANIFEST.MF", "Manifest-Version: 1.0\r\nCustom: yes\r\n\r\n")
        config = AssemblerConfig(
            project=project,
            archive=ArchiveConfig(manifest_file="MANIFEST.MF", add_build_metadata=False),
        )
        archiver = create_archiver("jar", config, dest_file=tmp_path / "a.jar")
        archiver.add_bytes(MANIFEST_PATH, b"from contents")
        archiver.create_archive()
        with zipfile.ZipFile(tmp_path / "a.jar") as zf:
            assert zf.read(MANIFEST_PATH) == b"Manifest-Version: 1.0\r\nCustom: yes\r\n\r\n"

    def test_missing_manifest_file(self, project: ProjectInfo, tmp_path: Path) -> None:
        config = AssemblerConfig(project=project, archive=ArchiveConfig(manifest_file="nope.MF"))
        archiver = create_archiver("jar", config, dest_file=tmp_path / "a.jar")
        with pytest.raises(ArchiveCreationError, match="Error reading manifest file"):
            archiver.create_archive()


class TestManifestFormat:
    def test_short_attributes(self) -> None:
        data = format_manifest({"Manifest-Version": "1.0", "Main-Class": "org.example.Main"})
        assert data == b"Manifest-Version: 1.0\r\nMain-Class: org.example.Main\r\n\r\n"

    def test_long_lines_continue(self) -> None:
        value = "x" * 100
        data = format_manifest({"Class-Path": value})
        lines = data.split(b"\r\n")
        assert len(lines[0]) == 72
        assert lines[1].startswith(b" ")
        assert len(lines[1]) <= 72
        assert lines[0] + lines[1][1:] == f"Class-Path: {value}".encode()
        assert data.endswith(b"\r\n\r\n")

    def test_attributes(self, project: ProjectInfo) -> None:
        archive = ArchiveConfig(main_class="org.example.Main", manifest_entries={"Built-By": "ci"})
        attributes = build_manifest_attributes(project, archive)
        assert attributes["Manifest-Version"] == "1.0"
        assert attributes["Implementation-Title"] == "Demo"
        assert attributes["Main-Class"] == "org.example.Main"
        assert attributes["Built-By"] == "ci"
        assert attributes["Created-By"].startswith("assemblist ")
