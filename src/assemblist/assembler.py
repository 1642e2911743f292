"""Assembly orchestration: one archive per assembly per format.

:class:`AssemblyArchiver` turns a single :class:`~assemblist.models.Assembly`
into an archive file; :func:`assemble` reads every configured descriptor and
builds all of their formats.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Optional

from assemblist.archiver.base import ArchiveEntry
from assemblist.archiver.factory import create_archiver
from assemblist.archiver.proxy import AssemblyProxyArchiver
from assemblist.descriptor.reader import read_assemblies
from assemblist.exceptions import ArchiveCreationError, InvalidConfigurationError
from assemblist.formatting.formatter import FileFormatter
from assemblist.formatting.paths import get_distribution_name, get_output_directory
from assemblist.handlers.registry import HandlerRegistry
from assemblist.models import AssemblerConfig, Assembly
from assemblist.phases import AssemblyContext, AssemblyPhase, default_phases

logger = logging.getLogger(__name__)


def validate_assembly(assembly: Assembly) -> None:
    if not assembly.id or not assembly.id.strip():
        raise InvalidConfigurationError("Assembly ID must be present and non-empty.")


def verify_temp_directory(directory: Path) -> None:
    """Ensure the temporary root directory exists and is a directory."""
    if directory.exists() and not directory.is_dir():
        raise ArchiveCreationError(
            f"Temporary root directory {directory} exists but is not a directory"
        )
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArchiveCreationError(
            f"Cannot create temporary root directory {directory}: {exc}"
        ) from exc


def archive_file_name(full_name: str, format: str, config: AssemblerConfig) -> str:
    """``<full_name>.<format>``, or bare *full_name* for ``dir*`` formats when
    ``ignore_dir_format_extensions`` is set."""
    if config.ignore_dir_format_extensions and format.startswith("dir"):
        return full_name
    return f"{full_name}.{format}"


class AssemblyArchiver:
    """Builds archives for assemblies by running the assembly phases.

    Args:
        phases: Phases to run (default: :func:`~assemblist.phases.default_phases`).
            They are always executed in ascending ``order``.
        registry: Source of container descriptor handlers.
    """

    def __init__(
        self,
        phases: Optional[Sequence[AssemblyPhase]] = None,
        registry: Optional[HandlerRegistry] = None,
    ) -> None:
        self.phases = sorted(
            phases if phases is not None else default_phases(), key=lambda p: p.order
        )
        self.registry = registry or HandlerRegistry()

    def create_archive(
        self,
        assembly: Assembly,
        full_name: str,
        format: str,
        config: AssemblerConfig,
    ) -> Path:
        """Create one archive and return its path.

        All configuration errors (unknown format or compression, unknown
        handler hint) are raised before any phase runs. Temporary files are
        removed whether or not the build succeeds.

        Raises:
            InvalidConfigurationError: Invalid assembly id, format, or handler.
            ArchiveCreationError: On any failure writing the archive.
            FormattingError: On filtering or line-ending failures.
        """
        archiver = self._build(assembly, full_name, format, config)
        dest_file = archiver.dest_file
        if dest_file is None:
            raise ArchiveCreationError(f"No destination computed for assembly {assembly.id}")
        if not config.dry_run:
            logger.info("Building %s: %s", format, dest_file)
        return dest_file

    def list_entries(
        self,
        assembly: Assembly,
        full_name: str,
        format: str,
        config: AssemblerConfig,
    ) -> list[ArchiveEntry]:
        """Return the entries the archive would contain, without writing it."""
        dry_config = config.model_copy(update={"dry_run": True})
        return self._build(assembly, full_name, format, dry_config).entries

    def _build(
        self,
        assembly: Assembly,
        full_name: str,
        format: str,
        config: AssemblerConfig,
    ) -> AssemblyProxyArchiver:
        validate_assembly(assembly)

        file_name = archive_file_name(full_name, format, config)
        verify_temp_directory(config.get_temporary_root_directory())
        dest_file = config.get_output_directory() / file_name

        final_name = config.get_final_name()
        base_directory = final_name
        if assembly.base_directory is not None:
            base_directory = get_output_directory(assembly.base_directory, final_name, config)

        handlers = self.registry.select(assembly.container_descriptor_handlers)
        archiver = create_archiver(
            format,
            config,
            dest_file=dest_file,
            root_prefix=base_directory if assembly.include_base_directory else "",
            handlers=handlers,
        )

        with FileFormatter(config) as formatter:
            context = AssemblyContext(config=config, formatter=formatter)
            try:
                for phase in self.phases:
                    logger.debug("Running phase %s for assembly %s", phase.name, assembly.id)
                    phase.execute(assembly, archiver, context)
                archiver.create_archive()
            except OSError as exc:
                raise ArchiveCreationError(
                    f"Error creating assembly archive {assembly.id}: {exc}"
                ) from exc
        return archiver


def assembly_formats(assembly: Assembly, config: AssemblerConfig) -> list[str]:
    """Formats to build for *assembly*; configuration overrides the descriptor.

    Raises:
        InvalidConfigurationError: If neither specifies a format.
    """
    formats = config.formats or assembly.formats
    if not formats:
        raise InvalidConfigurationError(
            f"No formats specified in the configuration or the assembly descriptor '{assembly.id}'."
        )
    return list(dict.fromkeys(formats))


def assemble(
    config: AssemblerConfig,
    archiver: Optional[AssemblyArchiver] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> list[Path]:
    """Read every configured assembly and build each of its formats.

    Returns:
        The produced archive paths, in build order.
    """
    assembly_archiver = archiver or AssemblyArchiver()
    produced: list[Path] = []
    for assembly in read_assemblies(config, environ):
        full_name = get_distribution_name(assembly, config)
        for format in assembly_formats(assembly, config):
            produced.append(
                assembly_archiver.create_archive(assembly, full_name, format, config)
            )
    return produced
