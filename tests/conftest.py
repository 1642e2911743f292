"""Shared test fixtures for assemblist.

Provides reusable fixtures for building project layouts on disk, creating
isolated config environments, managing output state, and running CLI
commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from assemblist.models import AssemblerConfig, Artifact, ProjectInfo
from assemblist.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def write_file(path: Path, content: str | bytes = "") -> Path:
    """Write *content* to *path*, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


def make_zip(path: Path, members: dict[str, str | bytes]) -> Path:
    """Create a zip file at *path* holding *members*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return path


# ---------------------------------------------------------------------------
# Project fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A small project tree with sources, docs, and a built jar.

    Layout::

        project/
          README.txt
          LICENSE
          src/main/scripts/run.sh
          docs/guide.md
          target/demo-1.0.jar
    """
    root = tmp_path / "project"
    write_file(root / "README.txt", "Demo ${project.version}\n")
    write_file(root / "LICENSE", "Apache License\n")
    write_file(root / "src" / "main" / "scripts" / "run.sh", "#!/bin/sh\r\necho run\r\n")
    write_file(root / "docs" / "guide.md", "# Guide\n")
    make_zip(root / "target" / "demo-1.0.jar", {"org/example/Main.class": b"\xca\xfe\xba\xbe"})
    return root


@pytest.fixture
def project(project_dir: Path) -> ProjectInfo:
    """Project metadata for :func:`project_dir` with one runtime dependency."""
    lib = make_zip(
        project_dir / "repo" / "commons-lang-2.6.jar",
        {"org/apache/commons/lang/StringUtils.class": b"\x00\x01"},
    )
    return ProjectInfo(
        group_id="org.example",
        artifact_id="demo",
        version="1.0",
        name="Demo",
        basedir=project_dir,
        artifact=Artifact(
            group_id="org.example",
            artifact_id="demo",
            version="1.0",
            file=project_dir / "target" / "demo-1.0.jar",
        ),
        dependencies=[
            Artifact(
                group_id="commons-lang",
                artifact_id="commons-lang",
                version="2.6",
                scope="compile",
                file=lib,
            ),
        ],
    )


@pytest.fixture
def config(project: ProjectInfo) -> AssemblerConfig:
    """Default assembler configuration for :func:`project`."""
    return AssemblerConfig(project=project)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config. Clears all ASSEMBLIST_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("assemblist.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "ASSEMBLIST_FINAL_NAME",
        "ASSEMBLIST_OUTPUT_DIR",
        "ASSEMBLIST_DRY_RUN",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
