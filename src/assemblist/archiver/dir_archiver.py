"""Writer for the exploded ``dir`` format."""

from __future__ import annotations

import shutil
from pathlib import Path

from assemblist.archiver.base import ArchiveEntry, Archiver
from assemblist.exceptions import ArchiveCreationError


class DirectoryArchiver(Archiver):
    """Copies every entry into a directory tree rooted at ``dest_file``."""

    format = "dir"

    def _write(self, dest_file: Path, entries: list[ArchiveEntry]) -> None:
        if dest_file.exists() and not dest_file.is_dir():
            raise ArchiveCreationError(f"{dest_file} exists and is not a directory")
        dest_file.mkdir(parents=True, exist_ok=True)

        for entry in entries:
            target = dest_file / entry.path
            if entry.is_directory:
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                if entry.source is not None and entry.data is None:
                    shutil.copyfile(entry.source, target)
                else:
                    target.write_bytes(entry.read_bytes())
            if entry.mode is not None:
                target.chmod(entry.mode)
