"""Numeric process exit codes for the ``querycache`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~querycache.exceptions.QueryCacheError` subclass.
Shell scripts (for example a deploy hook that clears stale entries) can
inspect the exit code to determine the failure class without parsing stderr.

Example::

    $ querycache show all_books
    $ echo $?
    4   # EXIT_UNKNOWN_QUERY -- the name is not registered
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONFIG_ERROR = 3
"""The cache configuration is missing or invalid."""

EXIT_UNKNOWN_QUERY = 4
"""A query name was requested that the configuration does not register."""

EXIT_STORAGE_ERROR = 5
"""A file-system operation on the cache directory failed."""

EXIT_SERIALIZATION_ERROR = 6
"""A fetched result could not be encoded for storage."""

EXIT_CORRUPT_ENTRY = 7
"""A stored entry could not be decoded back into a result."""
