"""Phase embedding artifacts in a local-repository directory layout."""

from __future__ import annotations

import logging

from assemblist.archiver.base import parse_mode
from assemblist.archiver.proxy import AssemblyProxyArchiver
from assemblist.artifacts import filter_artifacts
from assemblist.formatting.paths import get_output_directory
from assemblist.models import Artifact, Assembly, Repository
from assemblist.phases.base import AssemblyContext, AssemblyPhase

logger = logging.getLogger(__name__)


def render_metadata(artifact: Artifact) -> bytes:
    lines = [
        f"groupId={artifact.group_id}",
        f"artifactId={artifact.artifact_id}",
        f"version={artifact.version}",
        f"type={artifact.type}",
    ]
    if artifact.classifier:
        lines.append(f"classifier={artifact.classifier}")
    return ("\n".join(lines) + "\n").encode("utf-8")


class RepositoriesPhase(AssemblyPhase):
    """Lays artifacts out as ``group/path/artifact/version/artifact-version[-classifier].ext``."""

    order = 40

    def execute(
        self,
        assembly: Assembly,
        archiver: AssemblyProxyArchiver,
        context: AssemblyContext,
    ) -> None:
        for repository in assembly.repositories:
            self.add_repository(repository, archiver, context)

    def add_repository(
        self,
        repository: Repository,
        archiver: AssemblyProxyArchiver,
        context: AssemblyContext,
    ) -> None:
        prefix = get_output_directory(
            repository.output_directory or "", context.final_name, context.config
        )
        mode = parse_mode(repository.file_mode)
        artifacts = filter_artifacts(
            context.config.project.dependencies,
            repository.includes,
            repository.excludes,
            scope=repository.scope,
        )

        for artifact in artifacts:
            if artifact.file is None:
                logger.warning("Skipping artifact: %s; it does not have an associated file.", artifact.id)
                continue
            path = prefix + artifact.repository_path()
            archiver.add_file(context.resolve(str(artifact.file)), path, mode)
            if repository.include_metadata:
                directory = path.rsplit("/", 1)[0]
                archiver.add_bytes(f"{directory}/metadata.properties", render_metadata(artifact), mode)
