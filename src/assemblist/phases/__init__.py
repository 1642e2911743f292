"""Assembly phases -- populate an archive from an assembly's content sources.

Phases run in ascending order: dependency sets (10), file sets (20),
files (30), repositories (40).
"""

from assemblist.phases.base import AssemblyContext, AssemblyPhase
from assemblist.phases.dependency_sets import DependencySetsPhase
from assemblist.phases.file_items import FileItemsPhase
from assemblist.phases.file_sets import FileSetsPhase
from assemblist.phases.repositories import RepositoriesPhase


def default_phases() -> list[AssemblyPhase]:
    """Return the built-in phases sorted by :attr:`AssemblyPhase.order`."""
    phases: list[AssemblyPhase] = [
        FileItemsPhase(),
        FileSetsPhase(),
        RepositoriesPhase(),
        DependencySetsPhase(),
    ]
    return sorted(phases, key=lambda phase: phase.order)


__all__ = [
    "AssemblyContext",
    "AssemblyPhase",
    "DependencySetsPhase",
    "FileItemsPhase",
    "FileSetsPhase",
    "RepositoriesPhase",
    "default_phases",
]
