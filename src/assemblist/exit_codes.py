"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~assemblist.exceptions.AssemblistError` subclass.
CI scripts can inspect the exit code to tell a broken descriptor apart from
a failed archive write without parsing stderr.

Example::

    $ assemblist single --descriptor broken.xml
    $ echo $?
    7   # EXIT_DESCRIPTOR_ERROR -- the descriptor could not be read
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_DESCRIPTOR_ERROR = 7
"""An assembly or component descriptor could not be located, parsed, or interpolated."""

EXIT_INVALID_CONFIGURATION = 8
"""The assembly configuration is invalid (unknown format, handler hint, compression...)."""

EXIT_ARCHIVE_ERROR = 9
"""The archive could not be written, or a file could not be formatted."""

EXIT_PLUGIN_ERROR = 10
"""A third-party container descriptor handler failed to load."""
