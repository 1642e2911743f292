"""Apply filtering and line-ending transforms to files bound for an archive."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from types import TracebackType
from typing import Optional, Union

from assemblist.exceptions import FormattingError
from assemblist.formatting.filtering import FilterContext
from assemblist.formatting.line_endings import LineEnding, convert_line_endings, is_binary
from assemblist.models import AssemblerConfig

logger = logging.getLogger(__name__)


class FileFormatter:
    """Produces transformed copies of source files and owns their cleanup.

    :meth:`format` returns the original path untouched when no transform
    applies (or when the transform leaves the bytes unchanged); otherwise
    it writes a temporary file under the configuration's temporary root
    directory. Every temporary file is removed by :meth:`close`, which the
    context-manager protocol calls on success and failure alike::

        with FileFormatter(config) as formatter:
            path = formatter.format(source, filtered=True, line_ending="unix")
            archiver.add_file(path, "README.txt")

    Args:
        config: The assembler configuration (encoding, filters, delimiters,
            temporary root directory).
        filter_context: Pre-built filter context; built lazily from
            *config* the first time a filtered file is formatted.
    """

    def __init__(
        self,
        config: AssemblerConfig,
        filter_context: Optional[FilterContext] = None,
    ) -> None:
        self._config = config
        self._filter_context = filter_context
        self._temp_dir: Optional[Path] = None

    @property
    def filter_context(self) -> FilterContext:
        if self._filter_context is None:
            self._filter_context = FilterContext.from_config(self._config)
        return self._filter_context

    def format(
        self,
        path: Path,
        filtered: bool = False,
        line_ending: Union[str, LineEnding, None] = None,
        encoding: Optional[str] = None,
    ) -> Path:
        """Return a path whose content has the requested transforms applied.

        Raises:
            FormattingError: On unreadable files, undecodable text, an
                illegal line ending, or a property cycle.
        """
        ending = line_ending if isinstance(line_ending, LineEnding) else LineEnding.parse(line_ending)
        if not filtered and ending is LineEnding.KEEP:
            return path

        try:
            data = path.read_bytes()
        except OSError as exc:
            raise FormattingError(f"Failed to read {path}: {exc}") from exc

        result = self.format_bytes(path.name, data, filtered, ending, encoding)
        if result == data:
            return path

        target = self._new_temp_file(path.name)
        try:
            target.write_bytes(result)
        except OSError as exc:
            raise FormattingError(f"Failed to write formatted copy of {path}: {exc}") from exc
        logger.debug("Formatted %s -> %s", path, target)
        return target

    def format_bytes(
        self,
        name: str,
        data: bytes,
        filtered: bool = False,
        line_ending: Union[str, LineEnding, None] = None,
        encoding: Optional[str] = None,
    ) -> bytes:
        """Transform in-memory content named *name*; binary data is returned as-is."""
        ending = line_ending if isinstance(line_ending, LineEnding) else LineEnding.parse(line_ending)
        if (not filtered and ending is LineEnding.KEEP) or is_binary(data):
            return data

        charset = encoding or self._config.encoding
        try:
            text = data.decode(charset)
        except (UnicodeDecodeError, LookupError) as exc:
            raise FormattingError(f"Cannot decode {name} as {charset}: {exc}") from exc

        if filtered:
            text = self.filter_context.filter_text(
                text, escape_backslashes=name.endswith(".properties")
            )
        text = convert_line_endings(text, ending)
        return text.encode(charset)

    def _new_temp_file(self, name: str) -> Path:
        if self._temp_dir is None:
            root = self._config.get_temporary_root_directory()
            try:
                root.mkdir(parents=True, exist_ok=True)
                self._temp_dir = Path(tempfile.mkdtemp(prefix="formatted-", dir=root))
            except OSError as exc:
                raise FormattingError(
                    f"Cannot create temporary files under {root}: {exc}"
                ) from exc
        fd, tmp = tempfile.mkstemp(suffix=f"-{name}", dir=self._temp_dir)
        os.close(fd)
        return Path(tmp)

    def close(self) -> None:
        """Delete every temporary file created by this formatter."""
        if self._temp_dir is not None:
            shutil.rmtree(self._temp_dir, ignore_errors=True)
            self._temp_dir = None

    def __enter__(self) -> "FileFormatter":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()
