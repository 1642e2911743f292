"""Phase adding the assembly's ``dependencySets``."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from assemblist.archiver.base import parse_mode
from assemblist.archiver.proxy import AssemblyProxyArchiver
from assemblist.artifacts import dependency_artifacts, filter_artifacts, is_archive_type
from assemblist.exceptions import ArchiveCreationError
from assemblist.formatting.paths import evaluate_file_name_mapping, get_output_directory
from assemblist.models import Artifact, Assembly, DependencySet, UnpackOptions
from assemblist.phases.base import AssemblyContext, AssemblyPhase

logger = logging.getLogger(__name__)


def unpack_directory_name(artifact: Artifact) -> str:
    """Working-directory name for an unpacked artifact.

    ``group_artifact_version[_classifier].type``
    """
    parts = [artifact.group_id, artifact.artifact_id, artifact.version]
    if artifact.classifier:
        parts.append(artifact.classifier)
    return "_".join(parts) + f".{artifact.type}"


class DependencySetsPhase(AssemblyPhase):
    """Adds resolved project artifacts, copied as files or unpacked."""

    order = 10

    def execute(
        self,
        assembly: Assembly,
        archiver: AssemblyProxyArchiver,
        context: AssemblyContext,
    ) -> None:
        if not assembly.dependency_sets:
            logger.debug("No dependency sets specified.")
            return
        for dependency_set in assembly.dependency_sets:
            self.add_dependency_set(dependency_set, archiver, context)

    def add_dependency_set(
        self,
        dependency_set: DependencySet,
        archiver: AssemblyProxyArchiver,
        context: AssemblyContext,
    ) -> None:
        project = context.config.project
        artifacts = dependency_artifacts(
            project,
            dependency_set.scope,
            use_project_artifact=dependency_set.use_project_artifact,
            use_project_attachments=dependency_set.use_project_attachments,
        )
        artifacts = filter_artifacts(artifacts, dependency_set.includes, dependency_set.excludes)
        logger.debug("Adding %d dependency artifacts.", len(artifacts))

        targets: dict[str, list[str]] = {}
        for artifact in artifacts:
            if artifact.file is None:
                logger.warning(
                    "Skipping artifact: %s; it does not have an associated file or directory.",
                    artifact.id,
                )
                continue
            target = self.add_artifact(artifact, dependency_set, archiver, context)
            if target is not None:
                targets.setdefault(target, []).append(artifact.id)

        for target, ids in targets.items():
            if len(ids) > 1:
                logger.warning(
                    "Multiple artifacts map to %s; only the last one is kept: %s",
                    target,
                    ", ".join(ids),
                )

    def add_artifact(
        self,
        artifact: Artifact,
        dependency_set: DependencySet,
        archiver: AssemblyProxyArchiver,
        context: AssemblyContext,
    ) -> Optional[str]:
        """Add one artifact; returns its archive path unless it was unpacked."""
        config = context.config
        source = context.resolve(str(artifact.file))
        prefix = get_output_directory(
            dependency_set.output_directory or "", context.final_name, config, artifact
        )
        file_mode = parse_mode(dependency_set.file_mode)

        if dependency_set.unpack and (source.is_dir() or is_archive_type(artifact)):
            options = dependency_set.unpack_options or UnpackOptions()
            transform = context.transform(options.filtered, options.line_ending)
            if source.is_dir():
                logger.debug("Adding artifact directory contents for: %s to: %s", artifact.id, prefix)
                archiver.add_file_set(
                    source,
                    prefix,
                    includes=options.includes,
                    excludes=options.excludes,
                    use_default_excludes=options.use_default_excludes,
                    file_mode=file_mode,
                    directory_mode=parse_mode(dependency_set.directory_mode),
                    transform=transform,
                )
            else:
                logger.debug("Unpacking artifact contents for: %s to: %s", artifact.id, prefix)
                archiver.add_archived_file_set(
                    source,
                    prefix,
                    includes=options.includes,
                    excludes=options.excludes,
                    use_default_excludes=options.use_default_excludes,
                    file_mode=file_mode,
                    unpack_directory=config.get_working_directory() / unpack_directory_name(artifact),
                    transform=transform,
                )
            return None

        name = evaluate_file_name_mapping(dependency_set.output_file_name_mapping, artifact, config)
        target = prefix + name
        if archiver.dest_file is not None and source.exists() and archiver.dest_file.exists():
            if source.resolve() == archiver.dest_file.resolve():
                source = self._move_aside(artifact, source, context)

        logger.debug("Adding artifact: %s with file: %s to assembly location: %s", artifact.id, source, target)
        if source.is_dir():
            archiver.add_file_set(source, target, file_mode=file_mode)
        else:
            archiver.add_file(source, target, file_mode)
        return target

    def _move_aside(self, artifact: Artifact, source: Path, context: AssemblyContext) -> Path:
        temp_root = context.config.get_temporary_root_directory()
        copy = temp_root / source.name
        logger.warning(
            "Artifact %s references the same file as the assembly destination file. "
            "Moving it to a temporary location for inclusion.",
            artifact.id,
        )
        try:
            temp_root.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, copy)
        except OSError as exc:
            raise ArchiveCreationError(
                f"Error moving artifact file '{source}' to temporary location {copy}: {exc}"
            ) from exc
        return copy
