"""Canonical Pydantic models shared across all assemblist modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Descriptor models** -- produced by the descriptor reader and consumed by the
archive phases:
    :class:`Assembly`, :class:`Component`, :class:`FileSet`,
    :class:`FileItem`, :class:`DependencySet`, :class:`Repository`,
    :class:`UnpackOptions`, and :class:`ContainerDescriptorHandlerConfig`.

**Project models** -- the project metadata an assembly is built against:
    :class:`Artifact`, :class:`BuildInfo`, and :class:`ProjectInfo`.

**Configuration models** -- the assembler configuration source and the
user-wide defaults persisted in the config directory:
    :class:`ArchiveConfig`, :class:`AssemblerConfig`, :class:`OutputConfig`,
    :class:`HandlersConfig`, and :class:`GlobalConfig`.
"""

from __future__ import annotations

import enum
import re
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Descriptor models ---


class ContainerDescriptorHandlerConfig(BaseModel):
    """Reference to a container descriptor handler by hint, plus its options.

    Example::

        ContainerDescriptorHandlerConfig(
            handler_name="file-aggregator",
            configuration={"file_pattern": r"NOTICE.*", "output_path": "NOTICE"},
        )
    """

    handler_name: str
    configuration: dict[str, Any] = Field(default_factory=dict)


class UnpackOptions(BaseModel):
    """Per-dependency-set options applied when artifacts are unpacked."""

    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    filtered: bool = False
    line_ending: Optional[str] = None
    use_default_excludes: bool = True


class FileSet(BaseModel):
    """A directory plus include/exclude glob patterns."""

    directory: Optional[str] = None
    output_directory: Optional[str] = None
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    use_default_excludes: bool = True
    line_ending: Optional[str] = None
    filtered: bool = False
    file_mode: Optional[str] = None
    directory_mode: Optional[str] = None


class FileItem(BaseModel):
    """A single file copied into the archive, optionally under a new name."""

    source: str
    output_directory: Optional[str] = None
    dest_name: Optional[str] = None
    line_ending: Optional[str] = None
    filtered: bool = False
    file_mode: Optional[str] = None


DEFAULT_OUTPUT_FILE_NAME_MAPPING = (
    "${artifact.artifactId}-${artifact.version}${dashClassifier?}.${artifact.extension}"
)


class DependencySet(BaseModel):
    """Selects resolved project artifacts by scope and artifact patterns.

    Include/exclude patterns have the form ``group:artifact[:type[:classifier]]``
    with ``*`` wildcards in any segment.
    """

    output_directory: Optional[str] = None
    output_file_name_mapping: str = DEFAULT_OUTPUT_FILE_NAME_MAPPING
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    scope: str = "runtime"
    use_project_artifact: bool = True
    use_project_attachments: bool = False
    unpack: bool = False
    unpack_options: Optional[UnpackOptions] = None
    file_mode: Optional[str] = None
    directory_mode: Optional[str] = None


class Repository(BaseModel):
    """Embeds the selected artifacts in a local-repository directory layout."""

    output_directory: Optional[str] = None
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    scope: str = "runtime"
    include_metadata: bool = False
    file_mode: Optional[str] = None


class Component(BaseModel):
    """A reusable fragment of content sources merged into an :class:`Assembly`.

    Components carry no ``component_descriptors`` of their own, so merging
    is always a single level deep.
    """

    container_descriptor_handlers: list[ContainerDescriptorHandlerConfig] = Field(
        default_factory=list
    )
    dependency_sets: list[DependencySet] = Field(default_factory=list)
    file_sets: list[FileSet] = Field(default_factory=list)
    files: list[FileItem] = Field(default_factory=list)
    repositories: list[Repository] = Field(default_factory=list)


class Assembly(Component):
    """The top-level description of one archive's desired contents.

    Created by parsing one descriptor document; mutated only while
    components are merged and the site directory is included.
    """

    id: str = ""
    formats: list[str] = Field(default_factory=list)
    include_base_directory: bool = True
    base_directory: Optional[str] = None
    include_site_directory: bool = False
    component_descriptors: list[str] = Field(default_factory=list)


# --- Project models ---


_TYPE_EXTENSIONS = {
    "test-jar": "jar",
    "ejb": "jar",
    "ejb-client": "jar",
    "maven-plugin": "jar",
    "java-source": "jar",
    "javadoc": "jar",
    "bundle": "jar",
}


class Artifact(BaseModel):
    """A resolved build artifact, backed by a file on disk."""

    group_id: str
    artifact_id: str
    version: str
    type: str = "jar"
    classifier: Optional[str] = None
    scope: str = "compile"
    file: Optional[Path] = None

    @property
    def extension(self) -> str:
        """File extension derived from the artifact type."""
        return _TYPE_EXTENSIONS.get(self.type, self.type)

    @property
    def id(self) -> str:
        """``group:artifact:type[:classifier]:version``."""
        parts = [self.group_id, self.artifact_id, self.type]
        if self.classifier:
            parts.append(self.classifier)
        parts.append(self.version)
        return ":".join(parts)

    @property
    def base_version(self) -> str:
        """The version with any timestamped snapshot suffix collapsed."""
        match = re.match(r"^(.*)-\d{8}\.\d{6}-\d+$", self.version)
        if match:
            return f"{match.group(1)}-SNAPSHOT"
        return self.version

    @property
    def dash_classifier(self) -> str:
        return f"-{self.classifier}" if self.classifier else ""

    def repository_path(self) -> str:
        """Relative path of this artifact in a local-repository layout."""
        group_path = self.group_id.replace(".", "/")
        file_name = (
            f"{self.artifact_id}-{self.version}{self.dash_classifier}.{self.extension}"
        )
        return f"{group_path}/{self.artifact_id}/{self.base_version}/{file_name}"


class BuildInfo(BaseModel):
    """Build layout of the project (directories are relative to ``basedir``)."""

    directory: str = "target"
    output_directory: str = "target/classes"
    final_name: Optional[str] = None
    filters: list[str] = Field(default_factory=list)


class ProjectInfo(BaseModel):
    """Project metadata the assembly is built against.

    Supplies name/version for interpolation and manifests, plus the
    already-resolved dependency artifacts consumed by dependency sets and
    repositories. Extra fields are preserved so that descriptors can
    reference them as ``${project.<field>}``.
    """

    model_config = ConfigDict(extra="allow")

    group_id: str = ""
    artifact_id: str
    version: str
    name: Optional[str] = None
    description: Optional[str] = None
    packaging: str = "jar"
    url: Optional[str] = None
    basedir: Path = Field(default_factory=Path.cwd)
    build: BuildInfo = Field(default_factory=BuildInfo)
    properties: dict[str, str] = Field(default_factory=dict)
    artifact: Optional[Artifact] = None
    attachments: list[Artifact] = Field(default_factory=list)
    dependencies: list[Artifact] = Field(default_factory=list)

    @property
    def final_name(self) -> str:
        return self.build.final_name or f"{self.artifact_id}-{self.version}"

    @property
    def id(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.packaging}:{self.version}"

    @property
    def build_directory(self) -> Path:
        return self.basedir / self.build.directory


# --- Configuration models ---


class TarLongFileMode(str, enum.Enum):
    """How tar entries with paths longer than 100 characters are handled."""

    WARN = "warn"
    FAIL = "fail"
    TRUNCATE = "truncate"
    GNU = "gnu"
    POSIX = "posix"
    OMIT = "omit"


class ArchiveConfig(BaseModel):
    """Manifest and build-metadata settings for jar-family archives."""

    manifest_file: Optional[str] = None
    main_class: Optional[str] = None
    manifest_entries: dict[str, str] = Field(default_factory=dict)
    add_build_metadata: bool = True
    compress: bool = True


class AssemblerConfig(BaseModel):
    """Everything one assembly run needs: descriptor sources, project, options.

    Directory options left unset default to locations under the project's
    build directory (see the ``get_*`` helpers). ``property_sources`` lists
    extra property layers in precedence order (later wins) and replaces any
    reliance on process-wide state for filtering and interpolation.
    """

    project: ProjectInfo
    descriptor: Optional[str] = None
    descriptor_ref: Optional[str] = None
    descriptors: list[str] = Field(default_factory=list)
    descriptor_refs: list[str] = Field(default_factory=list)
    descriptor_source_directory: Optional[Path] = None
    output_directory: Optional[Path] = None
    working_directory: Optional[Path] = None
    temporary_root_directory: Optional[Path] = None
    site_directory: Optional[Path] = None
    include_site: bool = False
    final_name: Optional[str] = None
    append_assembly_id: bool = True
    classifier: Optional[str] = None
    formats: list[str] = Field(default_factory=list)
    tar_long_file_mode: TarLongFileMode = TarLongFileMode.WARN
    dry_run: bool = False
    ignore_dir_format_extensions: bool = False
    ignore_missing_descriptor: bool = False
    filters: list[str] = Field(default_factory=list)
    include_project_build_filters: bool = True
    delimiters: list[str] = Field(default_factory=list)
    use_default_delimiters: bool = True
    escape_string: Optional[str] = None
    encoding: str = "utf-8"
    property_sources: list[dict[str, str]] = Field(default_factory=list)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    recompress_zipped_files: bool = True

    @property
    def basedir(self) -> Path:
        return self.project.basedir

    def get_final_name(self) -> str:
        return self.final_name or self.project.final_name

    def get_output_directory(self) -> Path:
        return self.output_directory or self.project.build_directory

    def get_working_directory(self) -> Path:
        return self.working_directory or (
            self.project.build_directory / "assembly" / "work"
        )

    def get_temporary_root_directory(self) -> Path:
        return self.temporary_root_directory or (
            self.project.build_directory / "archive-tmp"
        )

    def get_site_directory(self) -> Path:
        return self.site_directory or (self.project.build_directory / "site")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class HandlersConfig(BaseModel):
    """Explicit allow/deny lists for third-party container descriptor handlers."""

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class GlobalConfig(BaseModel):
    """User-wide defaults persisted at ``~/.config/assemblist/config.json``.

    Fields here have the lowest precedence and can be overridden by the
    project file, environment variables, or CLI flags. See
    :func:`~assemblist.config.resolve_config` for the full precedence chain.
    """

    output: OutputConfig = Field(default_factory=OutputConfig)
    handlers: HandlersConfig = Field(default_factory=HandlersConfig)
    tar_long_file_mode: TarLongFileMode = TarLongFileMode.WARN
    encoding: str = "utf-8"
    ignore_dir_format_extensions: bool = False
