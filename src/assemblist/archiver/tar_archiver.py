"""Tar writer with optional gzip, bzip2, or xz compression."""

from __future__ import annotations

import enum
import io
import logging
import tarfile
import time
from pathlib import Path
from typing import Optional

from assemblist.archiver.base import (
    DEFAULT_DIRECTORY_MODE,
    DEFAULT_FILE_MODE,
    ArchiveEntry,
    Archiver,
)
from assemblist.exceptions import ArchiveCreationError
from assemblist.models import TarLongFileMode

logger = logging.getLogger(__name__)

TAR_NAME_LIMIT = 100
"""Longest entry name a plain ustar header holds without extensions."""


class TarCompression(str, enum.Enum):
    NONE = "none"
    GZIP = "gz"
    BZIP2 = "bz2"
    XZ = "xz"

    @property
    def write_mode(self) -> str:
        return "w" if self is TarCompression.NONE else f"w:{self.value}"


_TAR_FORMATS = {
    TarLongFileMode.WARN: tarfile.GNU_FORMAT,
    TarLongFileMode.GNU: tarfile.GNU_FORMAT,
    TarLongFileMode.POSIX: tarfile.PAX_FORMAT,
}


class TarArchiver(Archiver):
    """Writes a tar archive.

    Entry names longer than 100 bytes are handled per *long_file_mode*:

    ``warn``
        GNU long-name extension, with a warning per entry.
    ``gnu`` / ``posix``
        GNU or PAX extension, silently.
    ``truncate``
        Name cut to 100 bytes.
    ``omit``
        Entry skipped.
    ``fail``
        :class:`~assemblist.exceptions.ArchiveCreationError`.
    """

    format = "tar"

    def __init__(
        self,
        dest_file: Optional[Path] = None,
        compression: TarCompression = TarCompression.NONE,
        long_file_mode: TarLongFileMode = TarLongFileMode.WARN,
    ) -> None:
        super().__init__(dest_file)
        self.compression = compression
        self.long_file_mode = long_file_mode

    def _entry_name(self, path: str) -> Optional[str]:
        if len(path.encode("utf-8")) <= TAR_NAME_LIMIT:
            return path
        mode = self.long_file_mode
        if mode is TarLongFileMode.FAIL:
            raise ArchiveCreationError(
                f"Entry name exceeds {TAR_NAME_LIMIT} characters: {path}"
            )
        if mode is TarLongFileMode.OMIT:
            logger.debug("Omitting entry with long name: %s", path)
            return None
        if mode is TarLongFileMode.TRUNCATE:
            return path.encode("utf-8")[:TAR_NAME_LIMIT].decode("utf-8", "ignore")
        if mode is TarLongFileMode.WARN:
            logger.warning("Entry %s is longer than %d characters", path, TAR_NAME_LIMIT)
        return path

    def _write(self, dest_file: Path, entries: list[ArchiveEntry]) -> None:
        tar_format = _TAR_FORMATS.get(self.long_file_mode, tarfile.USTAR_FORMAT)
        now = time.time()
        try:
            with tarfile.open(dest_file, self.compression.write_mode, format=tar_format) as tf:
                for entry in entries:
                    name = self._entry_name(entry.path)
                    if name is None:
                        continue
                    info = tarfile.TarInfo(name)
                    info.mtime = int(now)
                    if entry.is_directory:
                        info.type = tarfile.DIRTYPE
                        info.mode = entry.mode if entry.mode is not None else DEFAULT_DIRECTORY_MODE
                        tf.addfile(info)
                        continue

                    info.mode = entry.mode if entry.mode is not None else DEFAULT_FILE_MODE
                    if entry.source is not None and entry.data is None:
                        st = entry.source.stat()
                        info.size = st.st_size
                        info.mtime = int(st.st_mtime)
                        with open(entry.source, "rb") as fh:
                            tf.addfile(info, fh)
                    else:
                        data = entry.read_bytes()
                        info.size = len(data)
                        tf.addfile(info, io.BytesIO(data))
        except ValueError as exc:
            raise ArchiveCreationError(f"Error writing tar entry: {exc}") from exc

