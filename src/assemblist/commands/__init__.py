"""Built-in CLI sub-commands for assemblist.

This package groups the Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~assemblist.commands.single` -- build every assembly of a project.
* :mod:`~assemblist.commands.inspect` -- list archive entries, packaged
  descriptors, and available container descriptor handlers.
* :mod:`~assemblist.commands.config` -- view and modify global settings.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``inspect`` and ``config``) or a plain callback
function registered directly on the root app (for ``single``).
"""
