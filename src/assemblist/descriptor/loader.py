"""Load assembly and component descriptors from a file, URL, stdin, or built-in ref.

Descriptors are primarily XML documents whose element names are camelCase
(``includeBaseDirectory``, ``fileSets``, ``outputDirectory``). List
containers hold singular children::

    <assembly>
      <id>bin</id>
      <formats><format>zip</format></formats>
      <fileSets>
        <fileSet>
          <directory>src/main/scripts</directory>
          <lineEnding>unix</lineEnding>
        </fileSet>
      </fileSets>
    </assembly>

YAML and JSON documents with the same field names (camelCase or
snake_case) are accepted as well. Every loader returns a plain dictionary
with snake_case keys, ready for interpolation and model validation.

Public functions:

* :func:`load_descriptor` -- Load from a path, ``http(s)://`` URL, or ``-``.
* :func:`parse_descriptor` -- Parse a document already held in memory.
* :func:`load_builtin_descriptor` / :func:`list_builtin_descriptors` --
  Descriptors packaged under :mod:`assemblist.descriptors`.
"""

from __future__ import annotations

import json
import sys
import xml.etree.ElementTree as ET
from importlib import resources
from pathlib import Path
from typing import Any

import httpx
import yaml

from assemblist.descriptor.interpolation import camel_to_snake
from assemblist.exceptions import DescriptorReadError

# Elements whose children form a list rather than a mapping.
LIST_ELEMENTS = frozenset(
    {
        "formats",
        "includes",
        "excludes",
        "fileSets",
        "files",
        "dependencySets",
        "repositories",
        "componentDescriptors",
        "containerDescriptorHandlers",
    }
)

# Elements whose children are free-form key/value options.
MAPPING_ELEMENTS = frozenset({"configuration"})

# Elements that always hold a nested object, even when written empty.
OBJECT_ELEMENTS = frozenset(
    {
        "unpackOptions",
        "fileSet",
        "file",
        "dependencySet",
        "repository",
        "containerDescriptorHandler",
    }
)

_BUILTIN_PACKAGE = "assemblist.descriptors"


def load_descriptor(source: str) -> dict[str, Any]:
    """Load a descriptor from a URL, file path, or stdin (``-``).

    Args:
        source: An ``http(s)://`` URL, a file path, or ``-`` for stdin.

    Returns:
        The parsed descriptor with snake_case keys.

    Raises:
        DescriptorReadError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        return _load_from_url(source)
    return _load_from_file(Path(source))


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise DescriptorReadError(f"Failed to read from stdin: {exc}", location="-") from exc

    if not content.strip():
        raise DescriptorReadError("No input received from stdin", location="-")
    return parse_descriptor(content, location="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DescriptorReadError(
            f"HTTP {exc.response.status_code} fetching descriptor from {url}",
            location=url,
        ) from exc
    except httpx.RequestError as exc:
        raise DescriptorReadError(
            f"Failed to fetch descriptor from {url}: {exc}", location=url
        ) from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "xml" in content_type:
        hint = "xml"
    elif "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    return parse_descriptor(response.text, location=url, hint=hint)


def _load_from_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise DescriptorReadError(f"Descriptor file not found: {path}", location=str(path))

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DescriptorReadError(
            f"Failed to read descriptor {path}: {exc}", location=str(path)
        ) from exc

    suffix = path.suffix.lower()
    hint = {".xml": "xml", ".json": "json", ".yaml": "yaml", ".yml": "yaml"}.get(suffix, "")
    return parse_descriptor(content, location=str(path), hint=hint)


def parse_descriptor(content: str, location: str = "<string>", hint: str = "") -> dict[str, Any]:
    """Parse descriptor *content* as XML, JSON, or YAML.

    Without a *hint*, content starting with ``<`` is treated as XML;
    anything else is parsed as JSON and then YAML.

    Raises:
        DescriptorReadError: If the content is malformed or not a mapping.
    """
    if not content.strip():
        raise DescriptorReadError(f"Descriptor is empty: {location}", location=location)

    if hint == "xml" or (not hint and content.lstrip().startswith("<")):
        return _parse_xml(content, location)

    if hint != "yaml":
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise DescriptorReadError(
                    f"Invalid JSON in {location}: {exc}", location=location
                ) from exc
        else:
            return _normalise_document(data, location)

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise DescriptorReadError(
            f"Failed to parse descriptor {location}: {exc}", location=location
        ) from exc
    return _normalise_document(data, location)


def _normalise_document(data: Any, location: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        kind = type(data).__name__ if data is not None else "empty document"
        raise DescriptorReadError(
            f"Descriptor must be a mapping (got {kind}): {location}", location=location
        )
    # A top-level ``assembly:``/``component:`` wrapper is optional.
    if len(data) == 1 and next(iter(data)) in ("assembly", "component"):
        inner = next(iter(data.values()))
        if isinstance(inner, dict):
            data = inner
    return _snake_keys(data)


def _snake_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {camel_to_snake(str(k)): _snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_snake_keys(item) for item in value]
    return value


# --- XML ---


def _local_name(tag: str) -> str:
    """Strip an ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1]


def _parse_xml(content: str, location: str) -> dict[str, Any]:
    try:
        root = ET.fromstring(content)
    except ET.ParseError as exc:
        line, column = exc.position
        raise DescriptorReadError(
            f"Malformed descriptor {location} (line {line}, column {column}): {exc}",
            location=f"{location}:{line}:{column}",
        ) from exc

    result = _element_to_value(root)
    if not isinstance(result, dict):
        return {}
    return result


def _element_to_value(element: ET.Element) -> Any:
    name = _local_name(element.tag)
    children = list(element)

    if name in LIST_ELEMENTS:
        return [_element_to_value(child) for child in children]

    if not children:
        text = (element.text or "").strip()
        if not text and (name in MAPPING_ELEMENTS or name in OBJECT_ELEMENTS):
            return {}
        return text

    mapping: dict[str, Any] = {}
    for child in children:
        child_name = _local_name(child.tag)
        key = camel_to_snake(child_name)
        if name in MAPPING_ELEMENTS and not list(child):
            mapping[key] = (child.text or "").strip()
        else:
            mapping[key] = _element_to_value(child)
    return mapping


# --- Built-in descriptors ---


def list_builtin_descriptors() -> list[str]:
    """Return the ids of all packaged descriptor references, sorted."""
    root = resources.files(_BUILTIN_PACKAGE)
    return sorted(
        entry.name[: -len(".xml")]
        for entry in root.iterdir()
        if entry.name.endswith(".xml")
    )


def load_builtin_descriptor(ref: str) -> dict[str, Any]:
    """Load a packaged descriptor such as ``bin`` or ``jar-with-dependencies``.

    Raises:
        DescriptorReadError: If no descriptor with that id is packaged.
    """
    resource = resources.files(_BUILTIN_PACKAGE).joinpath(f"{ref}.xml")
    if not resource.is_file():
        raise DescriptorReadError(
            f"Unknown descriptor reference '{ref}'. "
            f"Available: {', '.join(list_builtin_descriptors())}",
            location=ref,
        )
    content = resource.read_text(encoding="utf-8")
    return parse_descriptor(content, location=f"builtin:{ref}", hint="xml")
