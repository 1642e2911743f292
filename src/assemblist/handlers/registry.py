"""Handler registry -- hint lookup, discovery, and per-build selection.

The registry maps handler *hints* (the ``handlerName`` used in assembly
descriptors) to zero-argument factories. It is populated with the built-in
handlers at construction and may be extended with third-party handlers
registered as Python entry points in the ``assemblist.handlers`` group::

    [project.entry-points."assemblist.handlers"]
    spring-schemas = "my_package.handlers:SpringSchemasHandler"
"""

from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable, Sequence
from typing import Optional

from assemblist.exceptions import InvalidConfigurationError, PluginError
from assemblist.handlers.aggregator import FileAggregatorHandler
from assemblist.handlers.base import ContainerDescriptorHandler
from assemblist.handlers.plexus import ComponentsXmlHandler
from assemblist.handlers.services import ServicesHandler
from assemblist.models import ContainerDescriptorHandlerConfig, GlobalConfig

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "assemblist.handlers"
"""The entry-point group name used for handler discovery."""

DEFAULT_HANDLER = "plexus"
"""Hint of the handler that is always active for every archive."""

HandlerFactory = Callable[[], ContainerDescriptorHandler]

BUILTIN_HANDLERS: dict[str, HandlerFactory] = {
    "plexus": ComponentsXmlHandler,
    "metaInf-services": ServicesHandler,
    "file-aggregator": FileAggregatorHandler,
}


class HandlerRegistry:
    """Creates container descriptor handlers by hint.

    Handlers are stateful for the duration of one archive build, so the
    registry stores factories and :meth:`select` always returns fresh
    instances.

    Example::

        registry = HandlerRegistry()
        registry.discover(global_config)
        handlers = registry.select(assembly.container_descriptor_handlers)
    """

    def __init__(self) -> None:
        self._factories: dict[str, HandlerFactory] = dict(BUILTIN_HANDLERS)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, hint: str, factory: HandlerFactory) -> None:
        """Register *factory* under *hint*.

        Raises:
            PluginError: If *hint* is already registered.
        """
        if hint in self._factories:
            raise PluginError(f"Container descriptor handler '{hint}' is already registered")
        self._factories[hint] = factory
        logger.debug("Registered container descriptor handler '%s'", hint)

    def discover(self, config: Optional[GlobalConfig] = None) -> list[str]:
        """Register third-party handlers declared as entry points.

        The ``handlers.enabled`` and ``handlers.disabled`` lists of *config*
        act as an allowlist/blocklist. Handlers that fail to load are logged
        as warnings and skipped.

        Returns:
            The hints that were registered.
        """
        config = config or GlobalConfig()
        enabled_set = set(config.handlers.enabled)
        disabled_set = set(config.handlers.disabled)
        registered: list[str] = []

        for ep in importlib.metadata.entry_points().select(group=ENTRY_POINT_GROUP):
            hint = ep.name
            if enabled_set and hint not in enabled_set:
                logger.debug("Handler '%s' not in enabled list, skipping", hint)
                continue
            if hint in disabled_set:
                logger.debug("Handler '%s' is disabled, skipping", hint)
                continue

            try:
                factory = ep.load()
                self.register(hint, factory)
                registered.append(hint)
            except Exception as exc:
                logger.warning("Failed to load container descriptor handler '%s': %s", hint, exc)

        return registered

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def hints(self) -> list[str]:
        return sorted(self._factories)

    def create(self, hint: str) -> ContainerDescriptorHandler:
        """Instantiate the handler registered under *hint*.

        Raises:
            InvalidConfigurationError: If no handler is registered for *hint*.
        """
        try:
            factory = self._factories[hint]
        except KeyError:
            raise InvalidConfigurationError(
                f"Cannot find container descriptor handler with hint: {hint}"
            ) from None
        return factory()

    def select(
        self, configs: Sequence[ContainerDescriptorHandlerConfig]
    ) -> list[ContainerDescriptorHandler]:
        """Build the handler list for one archive.

        One fresh, configured handler is created per entry in *configs*.
        The default ``plexus`` handler is appended unless one was already
        selected.
        """
        handlers: list[ContainerDescriptorHandler] = []
        for handler_config in configs:
            handler = self.create(handler_config.handler_name)
            handler.configure(handler_config.configuration)
            handlers.append(handler)

        if not any(h.name == DEFAULT_HANDLER for h in handlers):
            handlers.append(self.create(DEFAULT_HANDLER))
        return handlers
