"""Phase adding the assembly's individual ``files``."""

from __future__ import annotations

import logging

from assemblist.archiver.base import parse_mode
from assemblist.archiver.proxy import AssemblyProxyArchiver
from assemblist.exceptions import ArchiveCreationError
from assemblist.formatting.paths import get_output_directory
from assemblist.models import Assembly
from assemblist.phases.base import AssemblyContext, AssemblyPhase

logger = logging.getLogger(__name__)


class FileItemsPhase(AssemblyPhase):
    """Copies single files, optionally renamed, filtered, or line-ending converted."""

    order = 30

    def execute(
        self,
        assembly: Assembly,
        archiver: AssemblyProxyArchiver,
        context: AssemblyContext,
    ) -> None:
        for item in assembly.files:
            source = context.resolve(item.source)
            if not source.is_file():
                raise ArchiveCreationError(f"File to include does not exist: {source}")

            prefix = get_output_directory(
                item.output_directory or "", context.final_name, context.config
            )
            target = prefix + (item.dest_name or source.name)
            transform = context.transform(item.filtered, item.line_ending)
            if transform is not None:
                source = transform(source, target)

            archiver.add_file(source, target, parse_mode(item.file_mode))
