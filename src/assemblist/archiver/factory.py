"""Map assembly formats to configured archivers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional

from assemblist.archiver.base import Archiver
from assemblist.archiver.dir_archiver import DirectoryArchiver
from assemblist.archiver.manifest import BuildMetadataFinalizer, ManifestCreationFinalizer
from assemblist.archiver.proxy import AssemblyProxyArchiver
from assemblist.archiver.tar_archiver import TarArchiver, TarCompression
from assemblist.archiver.zip_archiver import EarArchiver, JarArchiver, WarArchiver, ZipArchiver
from assemblist.exceptions import NoSuchArchiverError, UnknownCompressionError
from assemblist.handlers.base import ContainerDescriptorHandler
from assemblist.models import AssemblerConfig

logger = logging.getLogger(__name__)

ARCHIVERS: dict[str, Callable[[AssemblerConfig], Archiver]] = {
    "zip": lambda config: ZipArchiver(
        compress=config.archive.compress,
        recompress_zipped_files=config.recompress_zipped_files,
    ),
    "jar": lambda config: JarArchiver(
        compress=config.archive.compress,
        recompress_zipped_files=config.recompress_zipped_files,
    ),
    "ear": lambda config: EarArchiver(
        compress=config.archive.compress,
        recompress_zipped_files=config.recompress_zipped_files,
    ),
    "dir": lambda config: DirectoryArchiver(),
}
"""Formats handled by plain lookup (tar and war are special-cased)."""

_TAR_SHORTHANDS = {
    "tgz": TarCompression.GZIP,
    "tbz2": TarCompression.BZIP2,
    "txz": TarCompression.XZ,
}

_TAR_SUFFIXES = {
    "gz": TarCompression.GZIP,
    "bz2": TarCompression.BZIP2,
    "xz": TarCompression.XZ,
}


def is_tar_format(format: str) -> bool:
    return format in _TAR_SHORTHANDS or format.startswith("tar")


def get_tar_compression(format: str) -> TarCompression:
    """Compression for a tar-family *format*.

    The suffix after the first ``.`` selects it (``tar.gz`` -> gzip); the
    shorthands ``tgz``, ``tbz2`` and ``txz`` are also recognised.

    Raises:
        UnknownCompressionError: For any other suffix (e.g. ``tar.xyz``).
    """
    index = format.find(".")
    if index >= 0:
        suffix = format[index + 1 :]
        try:
            return _TAR_SUFFIXES[suffix]
        except KeyError:
            raise UnknownCompressionError(f"Unknown compression format: {suffix}") from None
    return _TAR_SHORTHANDS.get(format, TarCompression.NONE)


def create_delegate(format: str, config: AssemblerConfig) -> Archiver:
    """Create the bare writer for *format*.

    Raises:
        UnknownCompressionError: For a tar format with an unknown suffix.
        NoSuchArchiverError: For a format no writer handles.
    """
    if is_tar_format(format):
        return TarArchiver(
            compression=get_tar_compression(format),
            long_file_mode=config.tar_long_file_mode,
        )
    if format == "war":
        return WarArchiver(
            compress=config.archive.compress,
            recompress_zipped_files=config.recompress_zipped_files,
            ignore_webxml=False,
        )
    try:
        factory = ARCHIVERS[format]
    except KeyError:
        raise NoSuchArchiverError(
            f"Cannot find archiver for format: {format} "
            f"(supported: {', '.join(supported_formats())})"
        ) from None
    return factory(config)


def supported_formats() -> list[str]:
    return [*sorted(ARCHIVERS), "war", "tar", "tar.gz", "tar.bz2", "tar.xz", "tgz", "tbz2", "txz"]


def create_archiver(
    format: str,
    config: AssemblerConfig,
    dest_file: Optional[Path] = None,
    root_prefix: str = "",
    handlers: Sequence[ContainerDescriptorHandler] = (),
) -> AssemblyProxyArchiver:
    """Create the proxied archiver an assembly's phases write through.

    Jar-family writers get the manifest finalizer (plus the build-metadata
    finalizer when ``archive.add_build_metadata`` is set) and drop
    signature files.
    """
    archiver = create_delegate(format, config)
    archiver.dest_file = dest_file

    if isinstance(archiver, JarArchiver):
        archiver.add_finalizer(ManifestCreationFinalizer(config.project, config.archive))
        if config.archive.add_build_metadata:
            archiver.add_finalizer(BuildMetadataFinalizer(config.project))

    logger.debug("Created %s archiver for format '%s'", type(archiver).__name__, format)
    return AssemblyProxyArchiver(
        archiver,
        root_prefix=root_prefix,
        handlers=handlers,
        working_directory=config.get_working_directory(),
        dry_run=config.dry_run,
    )
