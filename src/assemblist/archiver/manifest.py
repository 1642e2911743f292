"""Jar manifest and embedded build-metadata finalizers."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path

from assemblist import __version__
from assemblist.archiver.base import ArchiveFinalizer, Archiver
from assemblist.archiver.zip_archiver import MANIFEST_PATH
from assemblist.exceptions import ArchiveCreationError
from assemblist.models import ArchiveConfig, ProjectInfo

logger = logging.getLogger(__name__)

MANIFEST_LINE_LIMIT = 72
"""Maximum bytes per manifest line, including the ``Name: `` part."""


def format_manifest(attributes: Mapping[str, str]) -> bytes:
    """Serialise *attributes* as a jar manifest main section.

    Lines longer than 72 bytes continue on the next line after a single
    space; the section ends with a blank line.
    """
    out = bytearray()
    for name, value in attributes.items():
        line = f"{name}: {value}".encode("utf-8")
        out += line[:MANIFEST_LINE_LIMIT] + b"\r\n"
        rest = line[MANIFEST_LINE_LIMIT:]
        while rest:
            out += b" " + rest[: MANIFEST_LINE_LIMIT - 1] + b"\r\n"
            rest = rest[MANIFEST_LINE_LIMIT - 1 :]
    out += b"\r\n"
    return bytes(out)


def build_manifest_attributes(project: ProjectInfo, archive: ArchiveConfig) -> dict[str, str]:
    """Main-section attributes synthesised from project metadata."""
    attributes = {
        "Manifest-Version": "1.0",
        "Created-By": f"assemblist {__version__}",
        "Implementation-Title": project.name or project.artifact_id,
        "Implementation-Version": project.version,
    }
    if project.group_id:
        attributes["Implementation-Vendor-Id"] = project.group_id
    if archive.main_class:
        attributes["Main-Class"] = archive.main_class
    attributes.update(archive.manifest_entries)
    return attributes


class ManifestCreationFinalizer(ArchiveFinalizer):
    """Adds ``META-INF/MANIFEST.MF`` to jar-family archives.

    An explicit ``manifest_file`` is copied verbatim; otherwise the manifest
    is built from the project metadata plus ``manifest_entries``. Either way
    it replaces any manifest contributed by the archive contents.
    """

    def __init__(self, project: ProjectInfo, archive: ArchiveConfig) -> None:
        self.project = project
        self.archive = archive

    def finalize(self, archiver: Archiver) -> None:
        if self.archive.manifest_file:
            path = Path(self.archive.manifest_file)
            if not path.is_absolute():
                path = self.project.basedir / path
            try:
                data = path.read_bytes()
            except OSError as exc:
                raise ArchiveCreationError(f"Error reading manifest file {path}: {exc}") from exc
            logger.debug("Using manifest file %s", path)
        else:
            data = format_manifest(build_manifest_attributes(self.project, self.archive))
        archiver.add_bytes(MANIFEST_PATH, data)


class BuildMetadataFinalizer(ArchiveFinalizer):
    """Embeds ``project.properties`` and ``project.json`` under ``META-INF/assemblist``."""

    def __init__(self, project: ProjectInfo) -> None:
        self.project = project

    @property
    def metadata_directory(self) -> str:
        parts = ["META-INF", "assemblist"]
        if self.project.group_id:
            parts.append(self.project.group_id)
        parts.append(self.project.artifact_id)
        return "/".join(parts)

    def finalize(self, archiver: Archiver) -> None:
        project = self.project
        properties = (
            "# Generated by assemblist\n"
            f"groupId={project.group_id}\n"
            f"artifactId={project.artifact_id}\n"
            f"version={project.version}\n"
        )
        document = project.model_dump(
            mode="json",
            include={"group_id", "artifact_id", "version", "name", "description", "packaging", "url"},
            exclude_none=True,
        )
        base = self.metadata_directory
        archiver.add_bytes(f"{base}/project.properties", properties.encode("utf-8"))
        archiver.add_bytes(f"{base}/project.json", (json.dumps(document, indent=2) + "\n").encode("utf-8"))
