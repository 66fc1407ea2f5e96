"""Exception hierarchy for querycache.

All exceptions inherit from :class:`QueryCacheError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`querycache.exit_codes`. Library callers catch the specific subclass
they care about; the CLI entry point in :func:`querycache.app.main` catches
``QueryCacheError`` and exits with the appropriate code.

Subclass hierarchy::

    QueryCacheError (exit 1)
    +-- ConfigurationError      (exit 3)
    +-- UnknownQueryError       (exit 4)
    +-- StorageError            (exit 5)
    +-- SerializationError      (exit 6)
    +-- DeserializationError    (exit 7)
        +-- CacheCorruptionError (exit 7)
"""

from querycache.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_CORRUPT_ENTRY,
    EXIT_GENERIC_FAILURE,
    EXIT_SERIALIZATION_ERROR,
    EXIT_STORAGE_ERROR,
    EXIT_UNKNOWN_QUERY,
)


class QueryCacheError(Exception):
    """Base exception for all querycache errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`querycache.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(QueryCacheError):
    """Raised for a missing or invalid cache configuration."""

    exit_code = EXIT_CONFIG_ERROR


class UnknownQueryError(QueryCacheError):
    """Raised when a query name is not registered in the configuration.

    Args:
        name: The unregistered query name.
    """

    exit_code = EXIT_UNKNOWN_QUERY

    def __init__(self, name: str):
        super().__init__(f"Unknown query '{name}'")
        self.name = name


class StorageError(QueryCacheError):
    """Raised when creating, reading, writing or deleting a cache file fails."""

    exit_code = EXIT_STORAGE_ERROR


class SerializationError(QueryCacheError):
    """Raised when a fetched result cannot be encoded for storage."""

    exit_code = EXIT_SERIALIZATION_ERROR


class DeserializationError(QueryCacheError):
    """Raised when stored bytes cannot be decoded back into a result."""

    exit_code = EXIT_CORRUPT_ENTRY


class CacheCorruptionError(DeserializationError):
    """Raised when an entry file on disk is unreadable as a cache envelope.

    Args:
        message: Human-readable error description.
        path: Path of the corrupt entry file, when known.
    """

    def __init__(self, message: str, path: object = None):
        super().__init__(message)
        self.path = path
