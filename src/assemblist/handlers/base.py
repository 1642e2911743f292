"""Abstract base class for container descriptor handlers.

A container descriptor handler claims special archive entries (such as
``META-INF/plexus/components.xml``) that would otherwise collide when
several inputs contribute a file at the same path. Instead of letting each
copy overwrite the previous one, the handler intercepts every claimed
entry, merges the contents internally, and emits merged replacement
entries when the archive is finalized.

Handlers are looked up by *hint* in the
:class:`~assemblist.handlers.registry.HandlerRegistry`. Third-party packages
register their own by declaring an entry point in the
``assemblist.handlers`` group.

Example:
    Minimal handler implementation::

        class LicenseHandler(ContainerDescriptorHandler):
            @property
            def name(self) -> str:
                return "licenses"

            def claims(self, path: str) -> bool:
                return path == "LICENSES.txt"

            def accept(self, path: str, data: bytes) -> bool:
                self._chunks.append(data)
                return True

            def finalize(self) -> list[tuple[str, bytes]]:
                return [("LICENSES.txt", b"\\n".join(self._chunks))]
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from assemblist.exceptions import InvalidConfigurationError


class ContainerDescriptorHandler(ABC):
    """Base class for all container descriptor handlers.

    The lifecycle within one archive build is:

    1. Instantiation -- the registry calls the no-arg constructor, so every
       archive build gets fresh handler state.
    2. :meth:`configure` -- called once with the descriptor's options.
    3. :meth:`claims` / :meth:`accept` -- called for every entry routed
       through the archiver proxy.
    4. :meth:`finalize` -- called once before the archive is written; the
       returned entries are added to the archive.
    5. :meth:`reset` -- clears accumulated state.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The hint this handler is registered under (e.g. ``"plexus"``)."""
        ...

    def configure(self, options: Mapping[str, Any]) -> None:
        """Apply descriptor configuration.

        The default implementation accepts no options.

        Raises:
            InvalidConfigurationError: If *options* are not understood.
        """
        if options:
            raise InvalidConfigurationError(
                f"Container descriptor handler '{self.name}' takes no configuration "
                f"(got: {', '.join(sorted(options))})"
            )

    @abstractmethod
    def claims(self, path: str) -> bool:
        """Return True if the archive entry at *path* belongs to this handler."""
        ...

    @abstractmethod
    def accept(self, path: str, data: bytes) -> bool:
        """Intercept a claimed entry.

        Returns:
            ``True`` if the handler consumed the entry (it is not written to
            the archive directly), ``False`` to let it through unchanged.
        """
        ...

    @abstractmethod
    def finalize(self) -> list[tuple[str, bytes]]:
        """Return the merged ``(path, data)`` entries to add to the archive."""
        ...

    def reset(self) -> None:
        """Discard all state accumulated by :meth:`accept`."""
