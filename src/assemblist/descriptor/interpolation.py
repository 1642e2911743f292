"""Resolve ``${...}`` expressions against an ordered stack of value sources.

Descriptor values such as ``${project.version}`` or ``${env.HOME}`` are
looked up in a list of :class:`ValueSource` objects; the **first** source
that yields a value wins. Resolved values are themselves interpolated, so a
property may refer to another property. Expressions that refer back to
themselves (directly or through a chain) raise
:class:`~assemblist.exceptions.InterpolationError`; expressions no source
can resolve are left verbatim.

Object sources walk dotted paths through Pydantic models, converting
camelCase segments to snake_case (``build.finalName`` reads
``build.final_name``) so that descriptors keep their conventional
spelling.

The main entry points are:

* :class:`Interpolator` -- the expression engine.
* :func:`create_project_interpolator` -- the source stack used for
  assembly and component descriptors.
* :func:`interpolate_tree` -- deep-walk a parsed document, interpolating
  every string value.
"""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from collections.abc import Collection, Mapping, Sequence
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from assemblist.exceptions import InterpolationError
from assemblist.models import AssemblerConfig

PROJECT_PREFIXES = ("project.", "pom.")
PROJECT_PROPERTIES_PREFIXES = ("project.properties.", "pom.properties.")

_EXPRESSION_RE = re.compile(r"\$\{([^${}]+)\}")
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def camel_to_snake(name: str) -> str:
    """Convert ``outputDirectory`` to ``output_directory``."""
    return _CAMEL_RE.sub("_", name).lower()


def _strip_prefix(
    expression: str, prefixes: Sequence[str], allow_unprefixed: bool
) -> Optional[str]:
    for prefix in prefixes:
        if expression.startswith(prefix):
            return expression[len(prefix):]
    if allow_unprefixed or not prefixes:
        return expression
    return None


class ValueSource(ABC):
    """A place where an expression may be resolved to a string value."""

    @abstractmethod
    def get(self, expression: str) -> Optional[str]:
        """Return the value for *expression*, or ``None`` if unknown."""


class PropertiesValueSource(ValueSource):
    """Resolves expressions against a flat key/value mapping.

    Args:
        properties: The mapping to look expressions up in.
        prefixes: Optional prefixes that are stripped before lookup.
        allow_unprefixed: Whether expressions without one of *prefixes*
            are also looked up.
    """

    def __init__(
        self,
        properties: Mapping[str, Any],
        prefixes: Sequence[str] = (),
        allow_unprefixed: bool = True,
    ) -> None:
        self._properties = properties
        self._prefixes = tuple(prefixes)
        self._allow_unprefixed = allow_unprefixed

    def get(self, expression: str) -> Optional[str]:
        key = _strip_prefix(expression, self._prefixes, self._allow_unprefixed)
        if key is None or key not in self._properties:
            return None
        value = self._properties[key]
        return None if value is None else str(value)


class ObjectValueSource(ValueSource):
    """Resolves dotted expressions by walking attributes of an object.

    Only scalar leaves (strings, numbers, booleans, paths) resolve; a path
    ending on a model, mapping, or list yields ``None``.
    """

    def __init__(
        self,
        root: Any,
        prefixes: Sequence[str] = (),
        allow_unprefixed: bool = True,
    ) -> None:
        self._root = root
        self._prefixes = tuple(prefixes)
        self._allow_unprefixed = allow_unprefixed

    def get(self, expression: str) -> Optional[str]:
        path = _strip_prefix(expression, self._prefixes, self._allow_unprefixed)
        if not path:
            return None

        current: Any = self._root
        for segment in path.split("."):
            current = _lookup(current, segment)
            if current is None:
                return None

        if isinstance(current, Path):
            return current.as_posix()
        if isinstance(current, bool):
            return str(current).lower()
        if isinstance(current, (str, int, float)):
            return str(current)
        return None


def _lookup(current: Any, segment: str) -> Any:
    """Resolve one path segment on a mapping, list, or object."""
    if isinstance(current, Mapping):
        if segment in current:
            return current[segment]
        return current.get(camel_to_snake(segment))
    if isinstance(current, list):
        try:
            return current[int(segment)]
        except (ValueError, IndexError):
            return None
    if isinstance(current, BaseModel):
        extra = current.model_extra or {}
        if segment in extra:
            return extra[segment]
    for name in (camel_to_snake(segment), segment):
        if name.startswith("_"):
            continue
        try:
            return getattr(current, name)
        except AttributeError:
            continue
    return None


class Interpolator:
    """Expression engine over an ordered list of value sources.

    Sources are consulted in order and the first non-``None`` value wins.

    Example::

        interp = Interpolator([PropertiesValueSource({"name": "demo"})])
        interp.interpolate("${name}-dist")   # -> "demo-dist"
        interp.interpolate("${missing}")     # -> "${missing}"
    """

    def __init__(self, sources: Sequence[ValueSource] = ()) -> None:
        self._sources: list[ValueSource] = list(sources)

    def add_source(self, source: ValueSource) -> None:
        self._sources.append(source)

    def chain(self, other: "Interpolator") -> "Interpolator":
        """Return a new interpolator consulting our sources, then *other*'s."""
        return Interpolator([*self._sources, *other._sources])

    def resolve(self, expression: str) -> Optional[str]:
        """Resolve a single bare expression (without ``${}``) or return ``None``."""
        return self._resolve(expression.strip(), ())

    def interpolate(self, text: str) -> str:
        """Replace every resolvable ``${expr}`` in *text*.

        Raises:
            InterpolationError: If an expression refers back to itself.
        """
        return self._interpolate(text, ())

    def _interpolate(self, text: str, stack: tuple[str, ...]) -> str:
        if "${" not in text:
            return text

        def _replace(match: re.Match[str]) -> str:
            value = self._resolve(match.group(1).strip(), stack)
            return match.group(0) if value is None else value

        return _EXPRESSION_RE.sub(_replace, text)

    def _resolve(self, expression: str, stack: tuple[str, ...]) -> Optional[str]:
        if expression in stack:
            chain = " -> ".join((*stack, expression))
            raise InterpolationError(
                f"Expression cycle detected while interpolating '${{{stack[0]}}}': {chain}"
            )
        for source in self._sources:
            value = source.get(expression)
            if value is not None:
                return self._interpolate(value, (*stack, expression))
        return None


def merge_property_layers(layers: Sequence[Mapping[str, str]]) -> dict[str, str]:
    """Flatten property layers into one mapping; later layers override earlier ones."""
    merged: dict[str, str] = {}
    for layer in layers:
        merged.update(layer)
    return merged


def create_project_interpolator(
    config: AssemblerConfig, environ: Optional[Mapping[str, str]] = None
) -> Interpolator:
    """Build the source stack used to interpolate assembly and component descriptors.

    Lookup order (first wins):

    1. ``finalName`` / ``build.finalName``
    2. The explicit ``config.property_sources`` layers (later layer wins)
    3. Environment variables under the ``env.`` prefix
    4. Project properties (``project.properties.``/``pom.properties.``
       prefixes, or unprefixed)
    5. The project object (``project.``/``pom.`` prefixes, or unprefixed)

    Args:
        config: The assembler configuration carrying the project metadata.
        environ: Environment mapping; defaults to :data:`os.environ`.

    Returns:
        A ready-to-use :class:`Interpolator`.
    """
    final_name = config.get_final_name()
    project = config.project
    return Interpolator(
        [
            PropertiesValueSource(
                {"finalName": final_name, "build.finalName": final_name}
            ),
            PropertiesValueSource(merge_property_layers(config.property_sources)),
            PropertiesValueSource(
                os.environ if environ is None else environ,
                prefixes=("env.",),
                allow_unprefixed=False,
            ),
            PropertiesValueSource(
                project.properties, PROJECT_PROPERTIES_PREFIXES, allow_unprefixed=True
            ),
            ObjectValueSource(project, PROJECT_PREFIXES, allow_unprefixed=True),
        ]
    )


def interpolate_tree(
    obj: Any, interpolator: Interpolator, skip: Collection[str] = ()
) -> Any:
    """Recursively interpolate every string inside a parsed document.

    Dicts and lists are rebuilt; the input is not mutated. Keys are left
    untouched, as are the values of any key named in *skip*.
    """
    if isinstance(obj, str):
        return interpolator.interpolate(obj)
    if isinstance(obj, dict):
        return {
            key: value if key in skip else interpolate_tree(value, interpolator, skip)
            for key, value in obj.items()
        }
    if isinstance(obj, list):
        return [interpolate_tree(item, interpolator, skip) for item in obj]
    return obj
