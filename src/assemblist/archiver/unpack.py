"""Read and extract zip/jar and tar-family archives."""

from __future__ import annotations

import logging
import shutil
import tarfile
import zipfile
from collections.abc import Sequence
from pathlib import Path

from assemblist.archiver.base import normalise_entry_path
from assemblist.exceptions import ArchiveCreationError
from assemblist.formatting.scanner import is_selected

logger = logging.getLogger(__name__)


def is_archive(path: Path) -> bool:
    """True if *path* is a file that :func:`unpack` can extract."""
    if not path.is_file():
        return False
    return zipfile.is_zipfile(path) or tarfile.is_tarfile(path)


def list_members(archive: Path) -> list[str]:
    """Return the file member names of *archive* without extracting them."""
    try:
        if zipfile.is_zipfile(archive):
            with zipfile.ZipFile(archive) as zf:
                return [
                    normalise_entry_path(info.filename)
                    for info in zf.infolist()
                    if not info.is_dir()
                ]
        if tarfile.is_tarfile(archive):
            with tarfile.open(archive) as tf:
                return [normalise_entry_path(m.name) for m in tf.getmembers() if m.isfile()]
    except (OSError, zipfile.BadZipFile, tarfile.TarError) as exc:
        raise ArchiveCreationError(f"Error reading archive {archive}: {exc}") from exc
    raise ArchiveCreationError(f"Cannot unpack {archive}: not a zip or tar archive")


def read_member(archive: Path, name: str) -> bytes:
    """Return the bytes of file member *name* (as listed by :func:`list_members`)."""
    try:
        if zipfile.is_zipfile(archive):
            with zipfile.ZipFile(archive) as zf:
                for info in zf.infolist():
                    if not info.is_dir() and normalise_entry_path(info.filename) == name:
                        return zf.read(info)
        elif tarfile.is_tarfile(archive):
            with tarfile.open(archive) as tf:
                for member in tf.getmembers():
                    if member.isfile() and normalise_entry_path(member.name) == name:
                        src = tf.extractfile(member)
                        if src is not None:
                            with src:
                                return src.read()
    except (OSError, zipfile.BadZipFile, tarfile.TarError) as exc:
        raise ArchiveCreationError(f"Error reading archive {archive}: {exc}") from exc
    raise ArchiveCreationError(f"No member {name} in archive {archive}")


def _target(dest_dir: Path, name: str) -> Path:
    target = (dest_dir / name).resolve()
    if not target.is_relative_to(dest_dir.resolve()):
        raise ArchiveCreationError(f"Archive member escapes the extraction directory: {name}")
    return target


def unpack(
    archive: Path,
    dest_dir: Path,
    includes: Sequence[str] = (),
    excludes: Sequence[str] = (),
    use_default_excludes: bool = False,
) -> list[str]:
    """Extract the selected file members of *archive* into *dest_dir*.

    Returns:
        The extracted member paths (relative, ``/``-separated) in archive order.

    Raises:
        ArchiveCreationError: If *archive* is not a readable zip or tar file,
            or a member would land outside *dest_dir*.
    """
    extracted: list[str] = []
    dest_dir.mkdir(parents=True, exist_ok=True)
    logger.debug("Unpacking %s to %s", archive, dest_dir)

    try:
        if zipfile.is_zipfile(archive):
            with zipfile.ZipFile(archive) as zf:
                for info in zf.infolist():
                    name = normalise_entry_path(info.filename)
                    if info.is_dir() or not is_selected(name, includes, excludes, use_default_excludes):
                        continue
                    target = _target(dest_dir, name)
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with zf.open(info) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                    extracted.append(name)
            return extracted

        if tarfile.is_tarfile(archive):
            with tarfile.open(archive) as tf:
                for member in tf.getmembers():
                    name = normalise_entry_path(member.name)
                    if not member.isfile() or not is_selected(name, includes, excludes, use_default_excludes):
                        continue
                    target = _target(dest_dir, name)
                    target.parent.mkdir(parents=True, exist_ok=True)
                    src = tf.extractfile(member)
                    if src is None:
                        continue
                    with src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                    extracted.append(name)
            return extracted
    except (OSError, zipfile.BadZipFile, tarfile.TarError) as exc:
        raise ArchiveCreationError(f"Error unpacking {archive}: {exc}") from exc

    raise ArchiveCreationError(f"Cannot unpack {archive}: not a zip or tar archive")
