"""Abstract base class for assembly phases and the shared phase context."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from assemblist.archiver.proxy import AssemblyProxyArchiver, FileTransform
from assemblist.formatting.formatter import FileFormatter
from assemblist.formatting.line_endings import LineEnding
from assemblist.models import AssemblerConfig, Assembly


@dataclass
class AssemblyContext:
    """State shared by every phase of one archive build."""

    config: AssemblerConfig
    formatter: FileFormatter

    @property
    def final_name(self) -> str:
        return self.config.get_final_name()

    def resolve(self, path: str) -> Path:
        """Resolve *path* against the project base directory unless absolute."""
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.config.basedir / candidate

    def transform(self, filtered: bool, line_ending: Optional[str]) -> Optional[FileTransform]:
        """Build the per-file transform for one content source.

        The line-ending policy is parsed once here, so an illegal value fails
        before any file is touched. Returns ``None`` when nothing applies.
        """
        ending = LineEnding.parse(line_ending)
        if not filtered and ending is LineEnding.KEEP:
            return None
        formatter = self.formatter
        return lambda source, rel: formatter.format(source, filtered, ending)


class AssemblyPhase(ABC):
    """One step of archive population.

    Phases run in ascending :attr:`order`; each reads one kind of content
    source from the assembly and adds the resolved entries to the archiver.
    """

    order: int = 0

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def execute(
        self,
        assembly: Assembly,
        archiver: AssemblyProxyArchiver,
        context: AssemblyContext,
    ) -> None:
        """Add this phase's content for *assembly* to *archiver*."""
        ...
