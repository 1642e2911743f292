"""Token filtering: substitute delimiter-wrapped property references in text.

Filtering resolves tokens such as ``${version}`` or ``@version@`` against an
ordered stack of property layers held by a :class:`FilterContext`:

1. project properties
2. the project object (``project.``/``pom.`` prefixes, or unprefixed)
3. build filter files (when ``include_project_build_filters`` is set)
4. ``config.filters`` files
5. the explicit ``config.property_sources`` layers

A key found in a later layer overrides the same key in an earlier one.
Tokens no layer can resolve are left verbatim, and text without any
recognised delimiter passes through unchanged.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from assemblist.descriptor.interpolation import (
    PROJECT_PREFIXES,
    Interpolator,
    ObjectValueSource,
    PropertiesValueSource,
    ValueSource,
    merge_property_layers,
)
from assemblist.exceptions import FormattingError, InterpolationError
from assemblist.models import AssemblerConfig, ProjectInfo

logger = logging.getLogger(__name__)

DEFAULT_DELIMITERS = ("${*}", "@")

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


@dataclass(frozen=True)
class Delimiter:
    """A start/end token pair such as ``${`` / ``}``."""

    start: str
    end: str

    @classmethod
    def parse(cls, spec: str) -> "Delimiter":
        """Parse ``"${*}"`` into ``("${", "}")``; a lone token is both start and end."""
        if "*" in spec:
            start, _, end = spec.partition("*")
            return cls(start, end)
        return cls(spec, spec)


def resolve_delimiters(
    custom: Sequence[str], use_default_delimiters: bool = True
) -> list[Delimiter]:
    """Build the active delimiter list.

    Custom delimiters extend the defaults, or replace them when
    *use_default_delimiters* is false. An empty result falls back to the
    defaults.
    """
    specs: list[str] = list(DEFAULT_DELIMITERS) if use_default_delimiters else []
    for spec in custom:
        if spec and spec not in specs:
            specs.append(spec)
    if not specs:
        specs = list(DEFAULT_DELIMITERS)
    return [Delimiter.parse(spec) for spec in specs]


class FilterContext:
    """Property layers, delimiters, and escape string used to filter text.

    Args:
        layers: Value sources in precedence order; later entries win.
        delimiters: Active token delimiters.
        escape_string: A string that, placed directly before a start
            delimiter, suppresses substitution and is itself removed.
    """

    def __init__(
        self,
        layers: Sequence[ValueSource],
        delimiters: Optional[Sequence[Delimiter]] = None,
        escape_string: Optional[str] = None,
    ) -> None:
        self._interpolator = Interpolator(list(reversed(layers)))
        self.delimiters = list(delimiters) if delimiters else resolve_delimiters(())
        self.escape_string = escape_string or None
        self._pattern = re.compile(
            "|".join(
                f"{re.escape(d.start)}(?P<k{i}>[^\\r\\n]+?){re.escape(d.end)}"
                for i, d in enumerate(self.delimiters)
            )
        )

    @classmethod
    def from_properties(
        cls,
        properties: Mapping[str, str],
        project: Optional[ProjectInfo] = None,
        delimiters: Optional[Sequence[Delimiter]] = None,
        escape_string: Optional[str] = None,
    ) -> "FilterContext":
        """Shortcut for a context over one mapping (plus an optional project)."""
        layers: list[ValueSource] = []
        if project is not None:
            layers.extend(_project_layers(project))
        layers.append(PropertiesValueSource(properties))
        return cls(layers, delimiters=delimiters, escape_string=escape_string)

    @classmethod
    def from_config(cls, config: AssemblerConfig) -> "FilterContext":
        """Build the filter context for one assembly run.

        Raises:
            FormattingError: If a filter file cannot be read.
        """
        project = config.project
        layers = _project_layers(project)

        if config.include_project_build_filters:
            layers.append(
                PropertiesValueSource(
                    _load_filter_files(project.build.filters, config.basedir)
                )
            )
        layers.append(PropertiesValueSource(_load_filter_files(config.filters, config.basedir)))
        layers.append(PropertiesValueSource(merge_property_layers(config.property_sources)))

        return cls(
            layers,
            delimiters=resolve_delimiters(config.delimiters, config.use_default_delimiters),
            escape_string=config.escape_string,
        )

    def resolve(self, key: str) -> Optional[str]:
        return self._interpolator.resolve(key)

    def filter_text(self, text: str, escape_backslashes: bool = False) -> str:
        """Substitute every resolvable token in *text*.

        Args:
            text: Content to filter.
            escape_backslashes: Double backslashes in substituted values
                (used for ``*.properties`` targets).

        Raises:
            FormattingError: If a property value refers back to itself.
        """
        out: list[str] = []
        pos = 0
        esc = self.escape_string
        while True:
            match = self._pattern.search(text, pos)
            if match is None:
                out.append(text[pos:])
                break

            start = match.start()
            group = match.lastgroup or ""
            delimiter = self.delimiters[int(group[1:])]

            if esc and start - len(esc) >= pos and text.startswith(esc, start - len(esc)):
                out.append(text[pos:start - len(esc)])
                out.append(match.group(0))
                pos = match.end()
                continue

            try:
                value = self.resolve(match.group(group))
            except InterpolationError as exc:
                raise FormattingError(str(exc)) from exc

            out.append(text[pos:start])
            if value is None:
                out.append(delimiter.start)
                pos = start + len(delimiter.start)
                continue
            if escape_backslashes:
                value = value.replace("\\", "\\\\")
            out.append(value)
            pos = match.end()
        return "".join(out)


def _project_layers(project: ProjectInfo) -> list[ValueSource]:
    return [
        PropertiesValueSource(project.properties),
        ObjectValueSource(project, PROJECT_PREFIXES, allow_unprefixed=True),
    ]


def _load_filter_files(paths: Sequence[str], basedir: Path) -> dict[str, str]:
    merged: dict[str, str] = {}
    for raw in paths:
        path = Path(raw)
        if not path.is_absolute():
            path = basedir / path
        try:
            merged.update(load_properties(path))
        except OSError as exc:
            raise FormattingError(f"Failed to read filter file {path}: {exc}") from exc
        logger.debug("Loaded filter properties from %s", path)
    return merged


def load_properties(path: Path, encoding: str = "latin-1") -> dict[str, str]:
    """Parse a ``.properties`` file.

    Supports ``#``/``!`` comments, ``=``/``:``/whitespace separators,
    backslash line continuations, and the ``\\t \\n \\r \\f \\uXXXX``
    escapes; any other escaped character stands for itself.
    """
    return parse_properties(path.read_text(encoding=encoding))


def parse_properties(text: str) -> dict[str, str]:
    props: dict[str, str] = {}
    logical = ""
    for raw_line in text.splitlines():
        line = raw_line.lstrip()
        if not logical and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            logical += line[:-1]
            continue
        logical += line
        key, value = _split_property(logical)
        props[key] = value
        logical = ""
    if logical:
        key, value = _split_property(logical)
        props[key] = value
    return props


def _split_property(line: str) -> tuple[str, str]:
    i = 0
    n = len(line)
    while i < n and line[i] not in "=: \t\f":
        i += 2 if line[i] == "\\" else 1
    key = line[:i]

    j = i
    while j < n and line[j] in " \t\f":
        j += 1
    if j < n and line[j] in "=:":
        j += 1
    while j < n and line[j] in " \t\f":
        j += 1
    return _unescape(key), _unescape(line[j:])


def _unescape(value: str) -> str:
    out: list[str] = []
    i = 0
    n = len(value)
    while i < n:
        ch = value[i]
        if ch != "\\" or i + 1 >= n:
            out.append(ch)
            i += 1
            continue
        nxt = value[i + 1]
        if nxt == "u" and i + 6 <= n:
            try:
                out.append(chr(int(value[i + 2:i + 6], 16)))
                i += 6
                continue
            except ValueError:
                pass
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)
