"""Exception hierarchy for assemblist.

All exceptions inherit from :class:`AssemblistError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`assemblist.exit_codes`.
The top-level error handler in :func:`assemblist.app.main` catches
``AssemblistError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    AssemblistError (exit 1)
    +-- ConfigError                    (exit 1)
    +-- DescriptorReadError            (exit 7)
    |   +-- InterpolationError         (exit 7)
    +-- InvalidConfigurationError      (exit 8)
    |   +-- NoSuchArchiverError        (exit 8)
    |   +-- UnknownCompressionError    (exit 8)
    +-- FormattingError                (exit 9)
    +-- ArchiveCreationError           (exit 9)
    +-- PluginError                    (exit 10)

No error in this package is retried; every failure surfaces to the caller
as a single terminal exception.
"""

from assemblist.exit_codes import (
    EXIT_ARCHIVE_ERROR,
    EXIT_DESCRIPTOR_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_CONFIGURATION,
    EXIT_PLUGIN_ERROR,
)


class AssemblistError(Exception):
    """Base exception for all assemblist errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(AssemblistError):
    """Raised for problems with the global or project config files."""

    exit_code = EXIT_GENERIC_FAILURE


class DescriptorReadError(AssemblistError):
    """Raised when an assembly or component descriptor cannot be located or parsed.

    Args:
        message: Human-readable error description.
        location: The descriptor path, URL or reference id that failed.
    """

    exit_code = EXIT_DESCRIPTOR_ERROR

    def __init__(self, message: str, location: str | None = None):
        super().__init__(message)
        self.location = location


class InterpolationError(DescriptorReadError):
    """Raised when a ``${...}`` expression cannot be evaluated (e.g. it is cyclic)."""


class InvalidConfigurationError(AssemblistError):
    """Raised for assembly configuration that can never produce an archive."""

    exit_code = EXIT_INVALID_CONFIGURATION


class NoSuchArchiverError(InvalidConfigurationError):
    """Raised when no archive writer is registered for the requested format."""


class UnknownCompressionError(InvalidConfigurationError):
    """Raised when a ``tar.<suffix>`` format names an unsupported compression."""


class FormattingError(AssemblistError):
    """Raised when filtering or line-ending conversion of a file fails."""

    exit_code = EXIT_ARCHIVE_ERROR


class ArchiveCreationError(AssemblistError):
    """Raised when writing the archive fails; the original cause is chained."""

    exit_code = EXIT_ARCHIVE_ERROR


class PluginError(AssemblistError):
    """Raised when a third-party container descriptor handler fails to load."""

    exit_code = EXIT_PLUGIN_ERROR
