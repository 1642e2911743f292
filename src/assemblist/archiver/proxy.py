"""The archiver facade that assembly phases write through."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional

from assemblist.archiver.base import ArchiveEntry, Archiver, normalise_entry_path
from assemblist.archiver.unpack import list_members, read_member, unpack
from assemblist.formatting.scanner import is_selected, scan
from assemblist.handlers.base import ContainerDescriptorHandler

logger = logging.getLogger(__name__)

FileTransform = Callable[[Path, str], Path]
"""Maps ``(source file, relative path)`` to the file that is actually added."""


def _prefix(value: str) -> str:
    value = normalise_entry_path(value)
    if value and not value.endswith("/"):
        value += "/"
    return value


class AssemblyProxyArchiver:
    """Wraps a concrete :class:`~assemblist.archiver.base.Archiver`.

    * Every entry path is prefixed with *root_prefix* (the assembly base
      directory, or ``""``).
    * Entries claimed by a container descriptor handler are diverted to it;
      the handlers' merged output is added by :meth:`create_archive`.
    * Adding the same archive at the same prefix twice is a no-op.
    * File sets rooted at (or above) the working directory never pick up
      the working directory's contents.
    * With *dry_run*, entries are recorded and finalized but nothing is
      unpacked or written. Archive members a handler claims are still read
      so that the merged entry appears in the listing.
    """

    def __init__(
        self,
        delegate: Archiver,
        root_prefix: str = "",
        handlers: Sequence[ContainerDescriptorHandler] = (),
        working_directory: Optional[Path] = None,
        dry_run: bool = False,
    ) -> None:
        self.delegate = delegate
        self.root_prefix = _prefix(root_prefix)
        self.handlers = list(handlers)
        self.working_directory = working_directory
        self.dry_run = dry_run
        self._archived_sets: set[str] = set()

    @property
    def dest_file(self) -> Optional[Path]:
        return self.delegate.dest_file

    @dest_file.setter
    def dest_file(self, value: Optional[Path]) -> None:
        self.delegate.dest_file = value

    @property
    def format(self) -> str:
        return self.delegate.format

    @property
    def entries(self) -> list[ArchiveEntry]:
        return self.delegate.entries

    # ------------------------------------------------------------------
    # Single entries
    # ------------------------------------------------------------------

    def _intercepted(self, path: str, read: Callable[[], bytes]) -> bool:
        for handler in self.handlers:
            if handler.claims(path) and handler.accept(path, read()):
                logger.debug("Entry %s claimed by handler '%s'", path, handler.name)
                return True
        return False

    def _put(self, entry: ArchiveEntry) -> None:
        entry.path = self.root_prefix + normalise_entry_path(entry.path)
        self.delegate.add_entry(entry)

    def add_file(self, source: Path, path: str, mode: Optional[int] = None) -> None:
        source = Path(source)
        path = normalise_entry_path(path)
        if self._intercepted(path, source.read_bytes):
            return
        logger.debug("Adding file: %s to archive location: %s%s", source, self.root_prefix, path)
        self._put(ArchiveEntry(path=path, source=source, mode=mode))

    def add_bytes(
        self,
        path: str,
        data: bytes,
        mode: Optional[int] = None,
        origin: Optional[str] = None,
    ) -> None:
        path = normalise_entry_path(path)
        if self._intercepted(path, lambda: data):
            return
        self._put(ArchiveEntry(path=path, data=data, mode=mode, origin=origin))

    def add_directory(self, path: str, mode: Optional[int] = None) -> None:
        self._put(ArchiveEntry(path=path, mode=mode, is_directory=True))

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def add_file_set(
        self,
        directory: Path,
        prefix: str = "",
        includes: Sequence[str] = (),
        excludes: Sequence[str] = (),
        use_default_excludes: bool = True,
        file_mode: Optional[int] = None,
        directory_mode: Optional[int] = None,
        transform: Optional[FileTransform] = None,
    ) -> int:
        """Add every selected file under *directory* at *prefix*.

        Returns:
            The number of files added.
        """
        directory = Path(directory).absolute()
        includes = list(includes)
        excludes = list(excludes)

        if self.working_directory is not None:
            work = Path(self.working_directory).absolute()
            if directory == work:
                logger.debug(
                    "Skipping file set with source directory matching the working directory: %s",
                    directory,
                )
                return 0
            if work.is_relative_to(directory):
                work_exclude = work.relative_to(directory).as_posix()
                logger.debug("Adding exclude for the working directory: %s", work_exclude)
                excludes.append(f"{work_exclude}/**")
                includes = [p for p in includes if not p.startswith(work_exclude)]

        prefix = _prefix(prefix)
        files = scan(directory, includes, excludes, use_default_excludes)
        logger.debug(
            "Adding file set in: %s to archive location: %s%s", directory, self.root_prefix, prefix
        )

        if directory_mode is not None:
            parents = sorted({rel.rsplit("/", 1)[0] for rel in files if "/" in rel})
            for parent in parents:
                self.add_directory(prefix + parent, directory_mode)

        for rel in files:
            source = directory / rel
            if transform is not None:
                source = transform(source, rel)
            self.add_file(source, prefix + rel, file_mode)
        return len(files)

    def add_archived_file_set(
        self,
        archive: Path,
        prefix: str = "",
        includes: Sequence[str] = (),
        excludes: Sequence[str] = (),
        use_default_excludes: bool = False,
        file_mode: Optional[int] = None,
        unpack_directory: Optional[Path] = None,
        transform: Optional[FileTransform] = None,
    ) -> int:
        """Unpack *archive* and add its selected members at *prefix*.

        Members are extracted to *unpack_directory* (default: a directory
        named after the archive inside the working directory) so that
        *transform* can operate on real files.

        Returns:
            The number of members added; ``0`` for a repeated archive/prefix pair.
        """
        archive = Path(archive)
        prefix = _prefix(prefix)
        key = f"{archive.absolute()}:{prefix}"
        if key in self._archived_sets:
            logger.debug("Skipping duplicate archived file set %s at '%s'", archive, prefix)
            return 0
        self._archived_sets.add(key)

        logger.debug(
            "Adding archived file set in: %s to archive location: %s%s",
            archive,
            self.root_prefix,
            prefix,
        )

        if self.dry_run:
            names = [
                name
                for name in list_members(archive)
                if is_selected(name, includes, excludes, use_default_excludes)
            ]
            for name in names:
                path = normalise_entry_path(prefix + name)
                if self._intercepted(path, lambda name=name: read_member(archive, name)):
                    continue
                self._put(ArchiveEntry(path=path, mode=file_mode, origin=f"{archive}!/{name}"))
            return len(names)

        if unpack_directory is None:
            base = self.working_directory or archive.parent
            unpack_directory = Path(base) / archive.name
        names = unpack(archive, unpack_directory, includes, excludes, use_default_excludes)
        for name in names:
            source = unpack_directory / name
            if transform is not None:
                source = transform(source, name)
            self.add_file(source, prefix + name, file_mode)
        return len(names)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def finalize_handlers(self) -> None:
        """Add the handlers' merged entries and reset their state."""
        for handler in self.handlers:
            for path, data in handler.finalize():
                logger.debug("Adding %s from handler '%s'", path, handler.name)
                self._put(ArchiveEntry(path=path, data=data, origin=f"<{handler.name}>"))
            handler.reset()

    def create_archive(self) -> Optional[Path]:
        """Finalize handlers and the delegate, then write the archive.

        In dry-run mode the delegate's finalizers still run, so
        :attr:`entries` lists exactly what would be written, but no file is
        produced.
        """
        self.finalize_handlers()
        if self.dry_run:
            self.delegate.finalize()
            logger.info(
                "Dry run: %d entries would be written to %s", len(self.entries), self.dest_file
            )
            return self.dest_file
        return self.delegate.create_archive()
