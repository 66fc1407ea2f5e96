"""querycache -- named-query disk cache with lazy population and bulk invalidation.

Each registered query name maps to one file under a cache directory. The
first lookup of a name calls a fetch function (typically a database query)
with the name's registered fetch parameters and stores the result; later
lookups read the file. :meth:`QueryCache.clear_all` deletes every entry,
usually from a hook that runs after writes to the underlying data.

Typical usage::

    from querycache import QueryCache, invalidates

    books = QueryCache.configure(
        "/var/cache/books/queries",
        {"all_books": {"order_by": "created_on"}},
    )
    rows = books.get("all_books", repository.fetch)

    @invalidates(books)
    def add_book(session, **fields):
        ...

Modules:
    cache: :class:`QueryCache`, the lookup and invalidation logic.
    models: Pydantic models shared across the package.
    serializer: Versioned JSON codec for entry files.
    storage: Atomic file-system primitives.
    accessors: Per-query accessor lookup table.
    sweeper: Invalidation decorator for mutating functions.
    config: JSON/YAML configuration loading.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from querycache.cache import QueryCache  # noqa: E402
from querycache.exceptions import (  # noqa: E402
    CacheCorruptionError,
    ConfigurationError,
    DeserializationError,
    QueryCacheError,
    SerializationError,
    StorageError,
    UnknownQueryError,
)
from querycache.models import CacheConfiguration, CorruptEntryPolicy  # noqa: E402
from querycache.sweeper import invalidates  # noqa: E402

__all__ = [
    "CacheConfiguration",
    "CacheCorruptionError",
    "ConfigurationError",
    "CorruptEntryPolicy",
    "DeserializationError",
    "QueryCache",
    "QueryCacheError",
    "SerializationError",
    "StorageError",
    "UnknownQueryError",
    "invalidates",
]
