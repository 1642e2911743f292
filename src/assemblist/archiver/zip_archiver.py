"""Zip-family writers: zip, jar, ear, and war."""

from __future__ import annotations

import logging
import re
import shutil
import stat
import time
import zipfile
from pathlib import Path
from typing import Optional

from assemblist.archiver.base import (
    DEFAULT_DIRECTORY_MODE,
    DEFAULT_FILE_MODE,
    ArchiveEntry,
    Archiver,
)
from assemblist.exceptions import ArchiveCreationError

logger = logging.getLogger(__name__)

MANIFEST_PATH = "META-INF/MANIFEST.MF"
WEB_XML_PATH = "WEB-INF/web.xml"

_ZIPPED_SUFFIXES = (".zip", ".jar", ".war", ".ear", ".gz", ".tgz", ".bz2", ".xz", ".7z")
_SIGNATURE_RE = re.compile(r"^META-INF/[^/]+\.(SF|DSA|RSA|EC)$", re.IGNORECASE)


def is_signature_file(path: str) -> bool:
    """True for jar signature files that become invalid once repackaged."""
    return _SIGNATURE_RE.match(path) is not None


def jar_security_selector(path: str) -> bool:
    if is_signature_file(path):
        logger.debug("Dropping signature file %s", path)
        return False
    return True


class ZipArchiver(Archiver):
    """Writes a zip file with :mod:`zipfile`.

    Args:
        dest_file: Output file.
        compress: Deflate entries (``False`` stores them).
        recompress_zipped_files: When ``False``, entries that are already
            compressed archives are stored rather than deflated again.
    """

    format = "zip"

    def __init__(
        self,
        dest_file: Optional[Path] = None,
        compress: bool = True,
        recompress_zipped_files: bool = True,
    ) -> None:
        super().__init__(dest_file)
        self.compress = compress
        self.recompress_zipped_files = recompress_zipped_files

    def _compress_type(self, path: str) -> int:
        if not self.compress:
            return zipfile.ZIP_STORED
        if not self.recompress_zipped_files and path.lower().endswith(_ZIPPED_SUFFIXES):
            return zipfile.ZIP_STORED
        return zipfile.ZIP_DEFLATED

    def _ordered(self, entries: list[ArchiveEntry]) -> list[ArchiveEntry]:
        return entries

    def _write(self, dest_file: Path, entries: list[ArchiveEntry]) -> None:
        now = time.localtime()[:6]
        with zipfile.ZipFile(dest_file, "w", strict_timestamps=False) as zf:
            for entry in self._ordered(entries):
                if entry.is_directory:
                    info = zipfile.ZipInfo(entry.path + "/", date_time=now)
                    mode = entry.mode if entry.mode is not None else DEFAULT_DIRECTORY_MODE
                    info.external_attr = (stat.S_IFDIR | mode) << 16 | 0x10
                    zf.writestr(info, b"")
                    continue

                mode = entry.mode if entry.mode is not None else DEFAULT_FILE_MODE
                if entry.source is not None and entry.data is None:
                    info = zipfile.ZipInfo.from_file(
                        entry.source, entry.path, strict_timestamps=False
                    )
                    info.external_attr = (stat.S_IFREG | mode) << 16
                    info.compress_type = self._compress_type(entry.path)
                    with open(entry.source, "rb") as src, zf.open(info, "w") as dst:
                        shutil.copyfileobj(src, dst)
                else:
                    info = zipfile.ZipInfo(entry.path, date_time=now)
                    info.external_attr = (stat.S_IFREG | mode) << 16
                    info.compress_type = self._compress_type(entry.path)
                    zf.writestr(info, entry.read_bytes())


class JarArchiver(ZipArchiver):
    """Zip writer that drops signature files and writes the manifest first."""

    format = "jar"

    def __init__(
        self,
        dest_file: Optional[Path] = None,
        compress: bool = True,
        recompress_zipped_files: bool = True,
    ) -> None:
        super().__init__(dest_file, compress, recompress_zipped_files)
        self.add_selector(jar_security_selector)

    def _ordered(self, entries: list[ArchiveEntry]) -> list[ArchiveEntry]:
        first = [e for e in entries if e.path in ("META-INF", MANIFEST_PATH)]
        first.sort(key=lambda e: e.path != "META-INF")
        return first + [e for e in entries if e.path not in ("META-INF", MANIFEST_PATH)]


class EarArchiver(JarArchiver):
    format = "ear"


class WarArchiver(JarArchiver):
    """Web-archive writer.

    Unless *ignore_webxml* is set, the archive must contain
    ``WEB-INF/web.xml`` by the time it is written.
    """

    format = "war"

    def __init__(
        self,
        dest_file: Optional[Path] = None,
        compress: bool = True,
        recompress_zipped_files: bool = True,
        ignore_webxml: bool = False,
    ) -> None:
        super().__init__(dest_file, compress, recompress_zipped_files)
        self.ignore_webxml = ignore_webxml

    def _write(self, dest_file: Path, entries: list[ArchiveEntry]) -> None:
        if not self.ignore_webxml and not any(
            e.path == WEB_XML_PATH and not e.is_directory for e in entries
        ):
            raise ArchiveCreationError(
                f"Web archive {dest_file.name} requires {WEB_XML_PATH}, "
                "but none was added to the archive"
            )
        super()._write(dest_file, entries)
