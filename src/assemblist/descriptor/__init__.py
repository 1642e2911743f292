"""Assembly descriptor reader -- load, interpolate, and merge descriptors.

Typical usage::

    from assemblist.descriptor import read_assemblies

    assemblies = read_assemblies(config)

Sub-modules:

* :mod:`~assemblist.descriptor.loader` -- I/O layer (file, URL, stdin,
  built-in references) and XML/YAML/JSON parsing.
* :mod:`~assemblist.descriptor.interpolation` -- ``${...}`` expression
  resolution against the project and explicit property layers.
* :mod:`~assemblist.descriptor.reader` -- Turns parsed documents into
  :class:`~assemblist.models.Assembly` models, including site inclusion
  and component merging.
"""

from assemblist.descriptor.loader import (
    list_builtin_descriptors,
    load_builtin_descriptor,
    load_descriptor,
)
from assemblist.descriptor.reader import (
    find_assembly,
    get_assembly_for_ref,
    get_assembly_from_file,
    merge_component,
    read_assemblies,
)

__all__ = [
    "find_assembly",
    "get_assembly_for_ref",
    "get_assembly_from_file",
    "list_builtin_descriptors",
    "load_builtin_descriptor",
    "load_descriptor",
    "merge_component",
    "read_assemblies",
]
