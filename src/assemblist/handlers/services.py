"""Merge ``META-INF/services/*`` service-provider files."""

from __future__ import annotations

from assemblist.exceptions import ArchiveCreationError
from assemblist.handlers.base import ContainerDescriptorHandler

SERVICES_PREFIX = "META-INF/services/"


class ServicesHandler(ContainerDescriptorHandler):
    """Concatenates provider lines per service file, dropping duplicates.

    Each claimed path yields one merged entry; provider lines keep the
    order in which they were first seen. Comment lines (``#``) and blank
    lines are discarded.
    """

    def __init__(self) -> None:
        self._providers: dict[str, list[str]] = {}

    @property
    def name(self) -> str:
        return "metaInf-services"

    def claims(self, path: str) -> bool:
        path = path.replace("\\", "/").lstrip("/")
        return path.startswith(SERVICES_PREFIX) and len(path) > len(SERVICES_PREFIX)

    def accept(self, path: str, data: bytes) -> bool:
        path = path.replace("\\", "/").lstrip("/")
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ArchiveCreationError(f"Error adding {path} to the archive: {exc}") from exc
        providers = self._providers.setdefault(path, [])
        for line in text.splitlines():
            line = line.split("#", 1)[0].strip()
            if line and line not in providers:
                providers.append(line)
        return True

    def finalize(self) -> list[tuple[str, bytes]]:
        return [
            (path, ("\n".join(lines) + "\n").encode("utf-8"))
            for path, lines in self._providers.items()
        ]

    def reset(self) -> None:
        self._providers.clear()
