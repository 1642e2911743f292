"""Artifact selection: scope filtering and ``group:artifact:type:classifier`` patterns."""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable, Sequence
from typing import Optional

from assemblist.exceptions import InvalidConfigurationError
from assemblist.models import Artifact, ProjectInfo

logger = logging.getLogger(__name__)

SCOPE_INCLUSIONS: dict[str, frozenset[str]] = {
    "compile": frozenset({"compile", "provided", "system"}),
    "runtime": frozenset({"compile", "runtime"}),
    "test": frozenset({"compile", "provided", "system", "runtime", "test"}),
    "provided": frozenset({"provided"}),
    "system": frozenset({"system"}),
}
"""Artifact scopes admitted by each dependency-set scope."""

ARCHIVE_EXTENSIONS = frozenset(
    {"jar", "war", "ear", "zip", "rar", "sar", "par", "tar", "tgz", "tbz2", "txz",
     "tar.gz", "tar.bz2", "tar.xz"}
)
"""Artifact extensions that can be unpacked."""


def scope_includes(scope: str, artifact_scope: str) -> bool:
    """Return True if a dependency set with *scope* admits *artifact_scope*.

    Raises:
        InvalidConfigurationError: For an unknown dependency-set scope.
    """
    try:
        return artifact_scope in SCOPE_INCLUSIONS[scope]
    except KeyError:
        raise InvalidConfigurationError(
            f"Invalid dependency scope '{scope}' "
            f"(expected one of: {', '.join(SCOPE_INCLUSIONS)})"
        ) from None


def matches_pattern(pattern: str, artifact: Artifact) -> bool:
    """Match ``group:artifact[:type[:classifier]]`` (``*`` wildcards) against *artifact*.

    Omitted trailing segments match anything.
    """
    values = [artifact.group_id, artifact.artifact_id, artifact.type, artifact.classifier or ""]
    segments = pattern.strip().split(":")
    if len(segments) > len(values):
        return False
    return all(
        fnmatch.fnmatchcase(value, segment or "*")
        for segment, value in zip(segments, values)
    )


def filter_artifacts(
    artifacts: Iterable[Artifact],
    includes: Sequence[str] = (),
    excludes: Sequence[str] = (),
    scope: Optional[str] = None,
) -> list[Artifact]:
    """Select artifacts by scope and include/exclude patterns, keeping order.

    Include patterns that never matched anything are reported as a warning.
    """
    selected: list[Artifact] = []
    triggered: set[str] = set()

    for artifact in artifacts:
        if scope is not None and not scope_includes(scope, artifact.scope):
            logger.debug("Artifact %s excluded by scope %s", artifact.id, scope)
            continue
        if includes:
            matched = [p for p in includes if matches_pattern(p, artifact)]
            if not matched:
                continue
            triggered.update(matched)
        if any(matches_pattern(p, artifact) for p in excludes):
            logger.debug("Artifact %s excluded by pattern", artifact.id)
            continue
        selected.append(artifact)

    untriggered = [p for p in includes if p not in triggered]
    if untriggered:
        logger.warning(
            "The following include patterns were never triggered: %s", ", ".join(untriggered)
        )
    return selected


def dependency_artifacts(
    project: ProjectInfo,
    scope: str,
    use_project_artifact: bool = False,
    use_project_attachments: bool = False,
) -> list[Artifact]:
    """The project's dependencies in *scope*, plus its own artifact and attachments.

    The project artifact and attachments bypass scope filtering; those
    without an associated file are skipped with a warning.
    """
    artifacts = [a for a in project.dependencies if scope_includes(scope, a.scope)]

    if use_project_artifact:
        if project.artifact is not None and project.artifact.file is not None:
            artifacts.append(project.artifact)
        else:
            logger.warning(
                "Cannot include project artifact: %s; it doesn't have an associated file",
                project.id,
            )

    if use_project_attachments:
        for attachment in project.attachments:
            if attachment.file is not None:
                artifacts.append(attachment)
            else:
                logger.warning(
                    "Cannot include attached artifact %s for project %s; "
                    "it doesn't have an associated file",
                    attachment.id,
                    project.id,
                )
    return artifacts


def is_archive_type(artifact: Artifact) -> bool:
    return artifact.extension in ARCHIVE_EXTENSIONS
