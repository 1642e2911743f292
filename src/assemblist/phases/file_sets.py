"""Phase adding the assembly's ``fileSets``."""

from __future__ import annotations

import logging

from assemblist.archiver.base import parse_mode
from assemblist.archiver.proxy import AssemblyProxyArchiver
from assemblist.formatting.paths import get_output_directory, to_relative
from assemblist.models import Assembly, FileSet
from assemblist.phases.base import AssemblyContext, AssemblyPhase

logger = logging.getLogger(__name__)


class FileSetsPhase(AssemblyPhase):
    order = 20

    def execute(
        self,
        assembly: Assembly,
        archiver: AssemblyProxyArchiver,
        context: AssemblyContext,
    ) -> None:
        if not assembly.file_sets:
            logger.debug("No file sets specified.")
            return
        for file_set in assembly.file_sets:
            self.add_file_set(file_set, archiver, context)

    def add_file_set(
        self,
        file_set: FileSet,
        archiver: AssemblyProxyArchiver,
        context: AssemblyContext,
    ) -> int:
        """Add one file set; returns the number of files added.

        Without an explicit ``output_directory`` the files keep the source
        directory's path relative to the project base directory.
        """
        basedir = context.config.basedir
        directory = context.resolve(file_set.directory) if file_set.directory else basedir

        output = file_set.output_directory
        if output is None:
            output = to_relative(basedir, directory) if file_set.directory else ""
            if output == ".":
                output = ""
        prefix = get_output_directory(output, context.final_name, context.config)

        if not directory.is_dir():
            logger.warning("File set directory %s does not exist; skipping", directory)
            return 0

        count = archiver.add_file_set(
            directory,
            prefix,
            includes=file_set.includes,
            excludes=file_set.excludes,
            use_default_excludes=file_set.use_default_excludes,
            file_mode=parse_mode(file_set.file_mode),
            directory_mode=parse_mode(file_set.directory_mode),
            transform=context.transform(file_set.filtered, file_set.line_ending),
        )
        logger.debug("Added %d files from %s", count, directory)
        return count
