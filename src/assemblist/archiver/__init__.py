"""Archive writers, the format factory, and the assembly proxy.

Typical usage::

    from assemblist.archiver import create_archiver

    archiver = create_archiver("tar.gz", config, dest_file=path, root_prefix="app-1.0")
    archiver.add_file(Path("README.txt"), "README.txt")
    archiver.create_archive()
"""

from assemblist.archiver.base import ArchiveEntry, ArchiveFinalizer, Archiver, parse_mode
from assemblist.archiver.dir_archiver import DirectoryArchiver
from assemblist.archiver.factory import (
    create_archiver,
    create_delegate,
    get_tar_compression,
    supported_formats,
)
from assemblist.archiver.manifest import BuildMetadataFinalizer, ManifestCreationFinalizer
from assemblist.archiver.proxy import AssemblyProxyArchiver
from assemblist.archiver.tar_archiver import TarArchiver, TarCompression
from assemblist.archiver.zip_archiver import EarArchiver, JarArchiver, WarArchiver, ZipArchiver

__all__ = [
    "ArchiveEntry",
    "ArchiveFinalizer",
    "Archiver",
    "AssemblyProxyArchiver",
    "BuildMetadataFinalizer",
    "DirectoryArchiver",
    "EarArchiver",
    "JarArchiver",
    "ManifestCreationFinalizer",
    "TarArchiver",
    "TarCompression",
    "WarArchiver",
    "ZipArchiver",
    "create_archiver",
    "create_delegate",
    "get_tar_compression",
    "parse_mode",
    "supported_formats",
]
