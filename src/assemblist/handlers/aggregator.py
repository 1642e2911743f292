"""Concatenate every entry matching a pattern into one output file."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Optional

from assemblist.exceptions import InvalidConfigurationError
from assemblist.handlers.base import ContainerDescriptorHandler


class FileAggregatorHandler(ContainerDescriptorHandler):
    """Aggregates files whose archive path matches ``file_pattern``.

    Configuration::

        <containerDescriptorHandler>
          <handlerName>file-aggregator</handlerName>
          <configuration>
            <filePattern>.*/NOTICE(\\.txt)?</filePattern>
            <outputPath>NOTICE</outputPath>
          </configuration>
        </containerDescriptorHandler>

    ``file_pattern`` is a regular expression that must match the whole
    path. The matched files are joined, in the order they were added, and
    written to ``output_path``.
    """

    def __init__(self) -> None:
        self._pattern: Optional[re.Pattern[str]] = None
        self._output_path: Optional[str] = None
        self._chunks: list[bytes] = []

    @property
    def name(self) -> str:
        return "file-aggregator"

    def configure(self, options: Mapping[str, Any]) -> None:
        pattern = options.get("file_pattern")
        output_path = options.get("output_path")
        if not pattern or not output_path:
            raise InvalidConfigurationError(
                "The file-aggregator handler requires 'filePattern' and 'outputPath'"
            )
        try:
            self._pattern = re.compile(str(pattern))
        except re.error as exc:
            raise InvalidConfigurationError(
                f"Invalid filePattern for file-aggregator: {exc}"
            ) from exc
        self._output_path = str(output_path).lstrip("/")

    def claims(self, path: str) -> bool:
        if self._pattern is None:
            return False
        return self._pattern.fullmatch(path.replace("\\", "/").lstrip("/")) is not None

    def accept(self, path: str, data: bytes) -> bool:
        if data and not data.endswith(b"\n"):
            data += b"\n"
        self._chunks.append(data)
        return True

    def finalize(self) -> list[tuple[str, bytes]]:
        if not self._chunks or self._output_path is None:
            return []
        return [(self._output_path, b"\n".join(self._chunks))]

    def reset(self) -> None:
        self._chunks.clear()
