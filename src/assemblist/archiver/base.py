"""Archive entries and the abstract writer every archive format builds on.

An :class:`Archiver` collects :class:`ArchiveEntry` objects keyed by their
archive path and writes them all in :meth:`Archiver.create_archive`. Adding
an entry at a path that is already pending replaces the earlier entry, so
the last write wins regardless of which phase produced it.
"""

from __future__ import annotations

import logging
import tarfile
import zipfile
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from assemblist.exceptions import ArchiveCreationError

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644
DEFAULT_DIRECTORY_MODE = 0o755

EntrySelector = Callable[[str], bool]
"""Returns False for archive paths that must never be written."""


def normalise_entry_path(path: str) -> str:
    """Use ``/`` separators and drop leading ``/`` and ``./`` segments."""
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def parse_mode(value: Optional[str]) -> Optional[int]:
    """Parse an octal permission string such as ``"0755"`` or ``"644"``."""
    if value is None or value == "":
        return None
    try:
        return int(str(value), 8)
    except ValueError:
        raise ArchiveCreationError(f"Invalid file mode: '{value}' (expected octal digits)") from None


@dataclass
class ArchiveEntry:
    """One pending archive member.

    Exactly one of *source* (a file on disk) or *data* (in-memory bytes)
    carries the content of a file entry; directory entries carry neither.
    *origin* describes where the content came from for listings.
    """

    path: str
    source: Optional[Path] = None
    data: Optional[bytes] = None
    mode: Optional[int] = None
    is_directory: bool = False
    origin: Optional[str] = None

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.source is not None:
            return self.source.read_bytes()
        return b""

    @property
    def size(self) -> int:
        if self.is_directory:
            return 0
        if self.data is not None:
            return len(self.data)
        if self.source is not None:
            return self.source.stat().st_size
        return 0

    def describe(self) -> str:
        if self.origin:
            return self.origin
        if self.source is not None:
            return str(self.source)
        return "<directory>" if self.is_directory else "<generated>"


class ArchiveFinalizer(ABC):
    """Hook run by :meth:`Archiver.create_archive` before entries are written.

    Finalizers may add, replace, or inspect pending entries.
    """

    @abstractmethod
    def finalize(self, archiver: Archiver) -> None: ...


class Archiver(ABC):
    """Collects entries for one archive file and writes them on demand.

    Subclasses implement :meth:`_write` for their container format. One
    instance serves exactly one archive-creation call.
    """

    format: str = ""

    def __init__(self, dest_file: Optional[Path] = None) -> None:
        self.dest_file = dest_file
        self._entries: dict[str, ArchiveEntry] = {}
        self._finalizers: list[ArchiveFinalizer] = []
        self._selectors: list[EntrySelector] = []
        self._finalized = False

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def add_finalizer(self, finalizer: ArchiveFinalizer) -> None:
        self._finalizers.append(finalizer)

    def add_selector(self, selector: EntrySelector) -> None:
        self._selectors.append(selector)

    def accepts(self, path: str) -> bool:
        """Return True if every registered selector admits *path*."""
        return all(selector(path) for selector in self._selectors)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    @property
    def entries(self) -> list[ArchiveEntry]:
        return list(self._entries.values())

    def get_entry(self, path: str) -> Optional[ArchiveEntry]:
        return self._entries.get(normalise_entry_path(path))

    def has_entry(self, path: str) -> bool:
        return normalise_entry_path(path) in self._entries

    def add_entry(self, entry: ArchiveEntry) -> None:
        """Queue *entry*, replacing any pending entry at the same path."""
        entry.path = normalise_entry_path(entry.path)
        if entry.is_directory:
            entry.path = entry.path.rstrip("/")
        if not entry.path:
            return
        if not self.accepts(entry.path):
            logger.debug("Entry %s rejected by selector", entry.path)
            return
        if self._entries.pop(entry.path, None) is not None:
            logger.debug("Replacing pending entry %s", entry.path)
        self._entries[entry.path] = entry

    def add_file(self, source: Path, path: str, mode: Optional[int] = None) -> None:
        self.add_entry(ArchiveEntry(path=path, source=Path(source), mode=mode))

    def add_bytes(self, path: str, data: bytes, mode: Optional[int] = None) -> None:
        self.add_entry(ArchiveEntry(path=path, data=data, mode=mode))

    def add_directory(self, path: str, mode: Optional[int] = None) -> None:
        self.add_entry(ArchiveEntry(path=path, mode=mode, is_directory=True))

    def remove_entry(self, path: str) -> Optional[ArchiveEntry]:
        return self._entries.pop(normalise_entry_path(path), None)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def finalize(self) -> None:
        """Run every finalizer once; later calls are no-ops."""
        if self._finalized:
            return
        self._finalized = True
        for finalizer in self._finalizers:
            finalizer.finalize(self)

    def create_archive(self) -> Path:
        """Run the finalizers, then write every pending entry to :attr:`dest_file`.

        Raises:
            ArchiveCreationError: If no destination is set or writing fails.
        """
        if self.dest_file is None:
            raise ArchiveCreationError(f"No destination file set for {self.format} archive")

        self.finalize()

        entries = self.entries
        logger.debug("Writing %d entries to %s", len(entries), self.dest_file)
        try:
            self.dest_file.parent.mkdir(parents=True, exist_ok=True)
            self._write(self.dest_file, entries)
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile, tarfile.TarError) as exc:
            raise ArchiveCreationError(
                f"Error writing archive {self.dest_file}: {exc}"
            ) from exc
        return self.dest_file

    @abstractmethod
    def _write(self, dest_file: Path, entries: list[ArchiveEntry]) -> None:
        """Write *entries* to *dest_file* in this archiver's format."""
        ...
