"""Line-ending policies for text content copied into archives."""

from __future__ import annotations

import enum
import re
from typing import Optional

from assemblist.exceptions import FormattingError

_NEWLINE_RE = re.compile(r"\r\n|\r|\n")

BINARY_SNIFF_SIZE = 8192


class LineEnding(str, enum.Enum):
    """Target line terminator for a content source.

    ``KEEP`` leaves content untouched. Aliases accepted by :meth:`parse`:
    ``lf`` for ``unix``, ``crlf``/``windows`` for ``dos``.
    """

    KEEP = "keep"
    UNIX = "unix"
    DOS = "dos"
    CR = "cr"

    @property
    def chars(self) -> Optional[str]:
        return _CHARS[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> "LineEnding":
        """Resolve a descriptor ``lineEnding`` value to a policy.

        ``None`` and the empty string mean :attr:`KEEP`.

        Raises:
            FormattingError: For unrecognised values.
        """
        if value is None or not value.strip():
            return cls.KEEP
        try:
            return _ALIASES[value.strip().lower()]
        except KeyError:
            raise FormattingError(f"Illegal lineEnding specified: '{value}'") from None


_CHARS = {
    LineEnding.KEEP: None,
    LineEnding.UNIX: "\n",
    LineEnding.DOS: "\r\n",
    LineEnding.CR: "\r",
}

_ALIASES = {
    "keep": LineEnding.KEEP,
    "unix": LineEnding.UNIX,
    "lf": LineEnding.UNIX,
    "dos": LineEnding.DOS,
    "windows": LineEnding.DOS,
    "crlf": LineEnding.DOS,
    "cr": LineEnding.CR,
}


def is_binary(data: bytes) -> bool:
    """Return True when *data* looks binary (a NUL byte in the first 8 KiB)."""
    return b"\x00" in data[:BINARY_SNIFF_SIZE]


def convert_line_endings(text: str, ending: LineEnding) -> str:
    """Rewrite every line terminator in *text* to *ending*.

    A missing final terminator is not added.
    """
    chars = ending.chars
    if chars is None:
        return text
    return _NEWLINE_RE.sub(chars, text)
