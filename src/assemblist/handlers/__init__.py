"""Container descriptor handlers -- merge colliding descriptor entries.

* :class:`~assemblist.handlers.base.ContainerDescriptorHandler` -- the ABC.
* :class:`~assemblist.handlers.registry.HandlerRegistry` -- hint lookup,
  entry-point discovery, and per-archive selection.
"""

from assemblist.handlers.aggregator import FileAggregatorHandler
from assemblist.handlers.base import ContainerDescriptorHandler
from assemblist.handlers.plexus import COMPONENTS_XML_PATH, ComponentsXmlHandler
from assemblist.handlers.registry import ENTRY_POINT_GROUP, HandlerRegistry
from assemblist.handlers.services import ServicesHandler

__all__ = [
    "COMPONENTS_XML_PATH",
    "ComponentsXmlHandler",
    "ContainerDescriptorHandler",
    "ENTRY_POINT_GROUP",
    "FileAggregatorHandler",
    "HandlerRegistry",
    "ServicesHandler",
]
