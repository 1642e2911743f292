"""Archive path helpers: relative paths, output directories, file-name mappings."""

from __future__ import annotations

from pathlib import PurePath
from typing import Optional, Union

from assemblist.descriptor.interpolation import (
    Interpolator,
    ObjectValueSource,
    PropertiesValueSource,
    create_project_interpolator,
)
from assemblist.exceptions import FormattingError, InterpolationError
from assemblist.models import Artifact, AssemblerConfig, Assembly

PathLike = Union[str, PurePath]


def _normalise(path: PathLike) -> str:
    return str(path).replace("\\", "/")


def to_relative(base: PathLike, target: PathLike, trailing_separator: bool = False) -> str:
    """Return *target* relative to *base*.

    ``to_relative("/home", "/home")`` is ``"."``, ``to_relative("/home",
    "/home/")`` is ``"./"`` and ``to_relative("/home", "/home/dir/sub")`` is
    ``"dir/sub"``. A target not nested under *base* is returned unchanged
    apart from separator normalisation.

    Args:
        base: The base directory.
        target: The path to relativise.
        trailing_separator: Force ``"./"`` for a target equal to *base*.
    """
    base_str = _normalise(base).rstrip("/")
    target_str = _normalise(target)

    if target_str.rstrip("/") == base_str:
        return "./" if trailing_separator or target_str.endswith("/") else "."

    prefix = f"{base_str}/"
    if target_str.startswith(prefix):
        return target_str[len(prefix):]
    return target_str


def normalise_output_directory(value: str) -> str:
    """Make *value* a relative archive directory ending in ``/`` (or ``""``)."""
    if value and not value.endswith(("/", "\\")):
        value += "/"
    if value and value.startswith(("/", "\\")):
        value = value[1:]
    return value.replace("//", "/").replace("\\\\", "\\")


def get_output_directory(
    output: Optional[str],
    final_name: Optional[str],
    config: Optional[AssemblerConfig] = None,
    artifact: Optional[Artifact] = None,
) -> str:
    """Interpolate and normalise a content source's ``output_directory``.

    ``${finalName}``/``${build.finalName}`` resolve to *final_name*; with an
    *artifact*, ``${artifact.*}`` expressions resolve against it; with a
    *config*, the project expression stack applies as well.

    Raises:
        FormattingError: If interpolation detects a cycle.
    """
    special: dict[str, str] = {}
    if final_name is not None:
        special = {"finalName": final_name, "build.finalName": final_name}

    interpolator = Interpolator([PropertiesValueSource(special)])
    if artifact is not None:
        interpolator.add_source(
            ObjectValueSource(artifact, ("artifact.",), allow_unprefixed=False)
        )
    if config is not None:
        interpolator = interpolator.chain(create_project_interpolator(config))

    try:
        value = interpolator.interpolate(output or "")
    except InterpolationError as exc:
        raise FormattingError(
            f"Failed to interpolate output directory. Reason: {exc}"
        ) from exc
    return normalise_output_directory(value)


def evaluate_file_name_mapping(
    expression: str,
    artifact: Artifact,
    config: Optional[AssemblerConfig] = None,
) -> str:
    """Compute the archive file name of *artifact* from a mapping expression.

    ``${artifact.*}`` reads artifact attributes; ``${dashClassifier}`` and
    ``${dashClassifier?}`` expand to ``-<classifier>`` or ``""``.

    Example::

        evaluate_file_name_mapping(
            "${artifact.artifactId}${dashClassifier?}.${artifact.extension}",
            Artifact(group_id="g", artifact_id="lib", version="1", classifier="sources"),
        )
        # -> "lib-sources.jar"
    """
    dash = artifact.dash_classifier
    interpolator = Interpolator(
        [
            ObjectValueSource(artifact, ("artifact.",), allow_unprefixed=False),
            PropertiesValueSource({"dashClassifier?": dash, "dashClassifier": dash}),
        ]
    )
    if config is not None:
        interpolator = interpolator.chain(create_project_interpolator(config))

    try:
        value = interpolator.interpolate(expression)
    except InterpolationError as exc:
        raise FormattingError(
            f"Failed to interpolate output filename mapping. Reason: {exc}"
        ) from exc
    return value.replace("//", "/").replace("\\\\", "\\")


def get_distribution_name(assembly: Assembly, config: AssemblerConfig) -> str:
    """``finalName-<id>`` when the assembly id is appended, else ``finalName[-classifier]``."""
    final_name = config.get_final_name()
    if config.append_assembly_id:
        if assembly.id:
            return f"{final_name}-{assembly.id}"
        return final_name
    if config.classifier:
        return f"{final_name}-{config.classifier}"
    return final_name
