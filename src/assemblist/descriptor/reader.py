"""Read assembly descriptors into :class:`~assemblist.models.Assembly` models.

:func:`read_assemblies` collects descriptors from every source named by an
:class:`~assemblist.models.AssemblerConfig`, in priority order:

1. ``descriptor`` -- a single descriptor path (or URL, or ``-``)
2. ``descriptor_ref`` -- a single built-in reference id
3. ``descriptors`` -- explicit descriptor paths
4. ``descriptor_refs`` -- built-in reference ids
5. every ``**/*.xml`` under ``descriptor_source_directory``

Each document is interpolated against the project (see
:mod:`assemblist.descriptor.interpolation`), validated, optionally extended
with the project's site directory, and finally merged with its referenced
component descriptors. Component merging is single-level: components
cannot reference further components.

Example::

    from assemblist.descriptor import read_assemblies, find_assembly

    assemblies = read_assemblies(config)
    dist = find_assembly(assemblies, "dist")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from assemblist.descriptor.interpolation import (
    Interpolator,
    create_project_interpolator,
    interpolate_tree,
)
from assemblist.descriptor.loader import load_builtin_descriptor, load_descriptor
from assemblist.exceptions import (
    DescriptorReadError,
    InterpolationError,
    InvalidConfigurationError,
)
from assemblist.formatting.scanner import scan
from assemblist.models import AssemblerConfig, Assembly, Component, FileSet

logger = logging.getLogger(__name__)

# Dependency-set fields evaluated per artifact while archiving, not at read time.
DEFERRED_DEPENDENCY_SET_FIELDS = frozenset({"output_file_name_mapping", "output_directory"})


def read_assemblies(
    config: AssemblerConfig, environ: Optional[Mapping[str, str]] = None
) -> list[Assembly]:
    """Read every assembly the configuration refers to.

    Args:
        config: Configuration naming the descriptor sources.
        environ: Environment for ``${env.*}`` expressions (default:
            :data:`os.environ`).

    Returns:
        The assemblies in source-priority order. Duplicate ids are kept
        (and logged as a warning); see :func:`find_assembly`.

    Raises:
        DescriptorReadError: If a named descriptor is missing or malformed
            (unless ``ignore_missing_descriptor`` is set for missing ones),
            or if no assembly is found at all.
        InvalidConfigurationError: If the site directory is requested but
            does not exist.
    """
    interpolator = create_project_interpolator(config, environ)
    assemblies: list[Assembly] = []

    def _add(assembly: Optional[Assembly]) -> None:
        if assembly is not None:
            assemblies.append(assembly)

    if config.descriptor:
        _add(_read_located(config.descriptor, config, interpolator))

    if config.descriptor_ref:
        _add(_read_ref(config.descriptor_ref, config, interpolator))

    for descriptor in config.descriptors:
        logger.info("Reading assembly descriptor: %s", descriptor)
        _add(_read_located(descriptor, config, interpolator))

    for ref in config.descriptor_refs:
        _add(_read_ref(ref, config, interpolator))

    source_dir = config.descriptor_source_directory
    if source_dir is not None:
        if source_dir.is_dir():
            for rel in scan(source_dir, includes=["**/*.xml"]):
                _add(_read_file(source_dir / rel, config, interpolator))
        else:
            logger.debug("Descriptor source directory %s does not exist", source_dir)

    if not assemblies:
        if config.ignore_missing_descriptor:
            logger.debug(
                "Ignoring missing assembly descriptors per configuration."
            )
        else:
            raise DescriptorReadError("No assembly descriptors found.")

    seen: set[str] = set()
    for assembly in assemblies:
        if assembly.id in seen:
            logger.warning("The assembly id %s is used more than once.", assembly.id)
        seen.add(assembly.id)

    return assemblies


def find_assembly(assemblies: list[Assembly], assembly_id: str) -> Optional[Assembly]:
    """Return the first assembly with *assembly_id* (first registered wins)."""
    for assembly in assemblies:
        if assembly.id == assembly_id:
            return assembly
    return None


def get_assembly_for_ref(
    ref: str, config: AssemblerConfig, environ: Optional[Mapping[str, str]] = None
) -> Assembly:
    """Read the built-in descriptor *ref* (``bin``, ``src``, ...).

    Raises:
        DescriptorReadError: If no built-in descriptor has that id.
    """
    interpolator = create_project_interpolator(config, environ)
    raw = load_builtin_descriptor(ref)
    return read_assembly(raw, f"builtin:{ref}", None, config, interpolator)


def get_assembly_from_file(
    path: Path, config: AssemblerConfig, environ: Optional[Mapping[str, str]] = None
) -> Assembly:
    """Read a single descriptor file.

    Raises:
        DescriptorReadError: If the file is missing or malformed.
    """
    interpolator = create_project_interpolator(config, environ)
    raw = load_descriptor(str(path))
    return read_assembly(raw, str(path), path.parent, config, interpolator)


def read_assembly(
    raw: dict[str, Any],
    location: str,
    assembly_dir: Optional[Path],
    config: AssemblerConfig,
    interpolator: Optional[Interpolator] = None,
) -> Assembly:
    """Turn a parsed descriptor document into an :class:`Assembly`.

    Steps: interpolate, validate, include the site directory when
    requested, then merge component descriptors.

    Args:
        raw: Document returned by the loader.
        location: Human-readable origin used in error messages.
        assembly_dir: Directory of the descriptor file, searched first for
            relative component paths.
        config: The assembler configuration.
        interpolator: Expression stack (built from *config* if omitted).
    """
    if interpolator is None:
        interpolator = create_project_interpolator(config)

    data = _interpolate_document(raw, interpolator, location)
    try:
        assembly = Assembly.model_validate(data)
    except ValidationError as exc:
        raise DescriptorReadError(
            f"Error reading descriptor: {location}: {exc}", location=location
        ) from exc

    if config.include_site or assembly.include_site_directory:
        include_site_directory(assembly, config)

    merge_component_descriptors(assembly, assembly_dir, config, interpolator)
    return assembly


def include_site_directory(assembly: Assembly, config: AssemblerConfig) -> None:
    """Append a file set copying the project's site directory into ``site/``.

    Raises:
        InvalidConfigurationError: If the site directory does not exist.
    """
    site_dir = config.get_site_directory()
    if not site_dir.exists():
        raise InvalidConfigurationError(
            f"Site directory {site_dir} does not exist; generate the site "
            f"before creating the assembly."
        )
    logger.info("Adding site directory to assembly: %s", site_dir)
    assembly.file_sets.append(FileSet(directory=str(site_dir), output_directory="/site"))


def merge_component_descriptors(
    assembly: Assembly,
    assembly_dir: Optional[Path],
    config: AssemblerConfig,
    interpolator: Optional[Interpolator] = None,
) -> None:
    """Locate, read, and merge every component the assembly references.

    Component paths are tried relative to *assembly_dir*, then to the
    project base directory, then as given.

    Raises:
        DescriptorReadError: If a component cannot be located or parsed.
    """
    if interpolator is None:
        interpolator = create_project_interpolator(config)

    for reference in assembly.component_descriptors:
        try:
            location = interpolator.interpolate(reference)
        except InterpolationError as exc:
            raise DescriptorReadError(
                f"Error interpolating component descriptor: {reference}: {exc}",
                location=reference,
            ) from exc

        path = _locate_component(location, assembly_dir, config.basedir)
        if path is None:
            raise DescriptorReadError(
                f"Failed to locate component descriptor: {location}", location=location
            )

        raw = load_descriptor(str(path))
        data = _interpolate_document(raw, interpolator, str(path))
        try:
            component = Component.model_validate(data)
        except ValidationError as exc:
            raise DescriptorReadError(
                f"Error reading component descriptor: {location} "
                f"(resolved to: {path}): {exc}",
                location=str(path),
            ) from exc

        logger.debug("Merging component %s into assembly %s", path, assembly.id)
        merge_component(component, assembly)


def merge_component(component: Component, assembly: Assembly) -> None:
    """Append the component's handlers and content sources onto *assembly*.

    Nothing is de-duplicated: merging the same component twice adds its
    entries twice.
    """
    assembly.container_descriptor_handlers.extend(component.container_descriptor_handlers)
    assembly.dependency_sets.extend(component.dependency_sets)
    assembly.file_sets.extend(component.file_sets)
    assembly.files.extend(component.files)
    assembly.repositories.extend(component.repositories)


# --- Private helpers ---


def _interpolate_document(
    raw: dict[str, Any], interpolator: Interpolator, location: str
) -> dict[str, Any]:
    try:
        data = interpolate_tree(
            {k: v for k, v in raw.items() if k != "dependency_sets"}, interpolator
        )
        if "dependency_sets" in raw:
            data["dependency_sets"] = interpolate_tree(
                raw["dependency_sets"], interpolator, skip=DEFERRED_DEPENDENCY_SET_FIELDS
            )
    except InterpolationError as exc:
        raise DescriptorReadError(
            f"Error reading descriptor: {location}: {exc}", location=location
        ) from exc
    return data


def _locate_component(
    location: str, assembly_dir: Optional[Path], basedir: Path
) -> Optional[Path]:
    candidates: list[Path] = []
    if assembly_dir is not None and assembly_dir.is_dir():
        candidates.append(assembly_dir / location)
    candidates.append(basedir / location)
    candidates.append(Path(location))
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _locate_descriptor(source: str, basedir: Path) -> Optional[Path]:
    for candidate in (basedir / source, Path(source)):
        if candidate.is_file():
            return candidate
    return None


def _read_located(
    source: str, config: AssemblerConfig, interpolator: Interpolator
) -> Optional[Assembly]:
    if source == "-" or source.startswith(("http://", "https://")):
        raw = load_descriptor(source)
        return read_assembly(raw, source, None, config, interpolator)

    path = _locate_descriptor(source, config.basedir)
    if path is None:
        if config.ignore_missing_descriptor:
            logger.debug("Ignoring missing assembly descriptor '%s' per configuration.", source)
            return None
        raise DescriptorReadError(
            f"Error locating assembly descriptor: {source}", location=source
        )
    return _read_file(path, config, interpolator)


def _read_file(
    path: Path, config: AssemblerConfig, interpolator: Interpolator
) -> Optional[Assembly]:
    if not path.is_file():
        if config.ignore_missing_descriptor:
            logger.debug("Ignoring missing assembly descriptor '%s' per configuration.", path)
            return None
        raise DescriptorReadError(f"Descriptor: '{path}' not found", location=str(path))
    raw = load_descriptor(str(path))
    return read_assembly(raw, str(path.resolve()), path.parent, config, interpolator)


def _read_ref(
    ref: str, config: AssemblerConfig, interpolator: Interpolator
) -> Optional[Assembly]:
    try:
        raw = load_builtin_descriptor(ref)
    except DescriptorReadError:
        if config.ignore_missing_descriptor:
            logger.debug("Ignoring missing assembly descriptor with ID '%s' per configuration.", ref)
            return None
        raise
    return read_assembly(raw, f"builtin:{ref}", None, config, interpolator)
