"""Named-query disk cache with lazy population and bulk invalidation.

:class:`QueryCache` maps each registered query name to one file inside the
configured cache directory. :meth:`QueryCache.get` serves the stored result
when the file exists and otherwise calls a fetch function with the query's
registered fetch parameters, stores the encoded result and returns it.
:meth:`QueryCache.clear_all` deletes the file of every registered name.

An entry is either *absent* or *present*. ``get`` moves an absent entry to
present; ``clear_all`` moves every entry back to absent. A present entry is
never rewritten in place.

There is no locking. Two racing misses on the same name both fetch and both
write; the last rename wins. Readers never observe a partial file because
writes go through :func:`~querycache.storage.write_entry`.

Example::

    from querycache import QueryCache

    books = QueryCache.configure(
        "/var/cache/books/queries",
        {"all_books": {"order_by": "created_on"}},
    )
    rows = books.get("all_books", repository.fetch)
    ...
    books.clear_all()  # after any write to the books table
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional

from pydantic import ValidationError

from querycache import serializer, storage
from querycache.exceptions import (
    CacheCorruptionError,
    ConfigurationError,
    DeserializationError,
    UnknownQueryError,
)
from querycache.models import CacheConfiguration, CorruptEntryPolicy, EntryInfo

if TYPE_CHECKING:
    from querycache.accessors import QueryAccessors

logger = logging.getLogger(__name__)

FetchFn = Callable[[Any], Any]


class QueryCache:
    """Disk-backed cache of named query results.

    Args:
        config: Validated cache configuration.
    """

    def __init__(self, config: CacheConfiguration) -> None:
        self._config = config

    @classmethod
    def configure(
        cls,
        cache_path: str | Path,
        queries: Optional[dict[str, Any]],
        **options: Any,
    ) -> "QueryCache":
        """Build a cache from raw values, validating them first.

        Args:
            cache_path: Directory for entry files. Created on first write.
            queries: Query name -> fetch parameters.
            **options: Extra :class:`~querycache.models.CacheConfiguration`
                fields, e.g. ``on_corrupt="refetch"``.

        Raises:
            ConfigurationError: If the values fail validation.
        """
        try:
            config = CacheConfiguration(cache_path=cache_path, queries=queries, **options)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid cache configuration: {exc}") from exc
        return cls(config)

    @property
    def config(self) -> CacheConfiguration:
        """The configuration this cache was built with."""
        return self._config

    @property
    def cache_path(self) -> Path:
        """The cache directory."""
        return self._config.cache_path

    @property
    def query_names(self) -> list[str]:
        """Registered query names in registration order."""
        return list(self._config.queries)

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def get(self, name: str, fetch_fn: FetchFn) -> Any:
        """Return the cached result for *name*, fetching it on a miss.

        On a miss the cache directory is created if needed, ``fetch_fn`` is
        called with the registered fetch parameters, and its result is
        encoded and written atomically before being returned. Once the entry
        exists ``fetch_fn`` is not called again for *name* until
        :meth:`clear_all`.

        Args:
            name: A registered query name.
            fetch_fn: Called as ``fetch_fn(fetch_parameters)`` on a miss,
                with a deep copy of the registered parameters. Its
                exceptions propagate unchanged and leave no entry.

        Returns:
            The cached or freshly fetched result.

        Raises:
            ConfigurationError: If no queries are registered, or *name* has
                no fetch parameters.
            UnknownQueryError: If *name* is not registered.
            CacheCorruptionError: If the stored entry cannot be decoded and
                the policy is ``raise``.
            SerializationError: If the fetched result cannot be encoded.
            StorageError: On file-system failures.
        """
        params = self._fetch_parameters(name)
        path = storage.entry_path(self.cache_path, name)

        data = storage.read_entry(path)
        if data is not None:
            try:
                value = serializer.decode(data)
            except DeserializationError as exc:
                if self._config.on_corrupt is not CorruptEntryPolicy.REFETCH:
                    raise CacheCorruptionError(
                        f"Corrupt cache entry for '{name}' at {path}: {exc}", path=path
                    ) from exc
                logger.warning("Refetching corrupt cache entry '%s' at %s: %s", name, path, exc)
            else:
                logger.debug("Cache hit for '%s'", name)
                return value

        logger.debug("Cache miss for '%s', fetching", name)
        storage.ensure_directory(self.cache_path)
        result = fetch_fn(copy.deepcopy(params))
        storage.write_entry(path, serializer.encode(result))
        return result

    def peek(self, name: str, default: Any = None) -> Any:
        """Return the stored result for *name* without ever fetching.

        The entry file is read once, so a concurrent :meth:`clear_all`
        yields either the stored value or *default*, never a mix.

        Returns:
            The decoded value, or *default* when the entry is absent.

        Raises:
            UnknownQueryError: If *name* is not registered.
            CacheCorruptionError: If the stored entry cannot be decoded,
                regardless of the configured policy.
        """
        path = self.path_for(name)
        data = storage.read_entry(path)
        if data is None:
            return default
        try:
            return serializer.decode(data)
        except DeserializationError as exc:
            raise CacheCorruptionError(
                f"Corrupt cache entry for '{name}' at {path}: {exc}", path=path
            ) from exc

    def accessors(self, fetch_fn: FetchFn) -> "QueryAccessors":
        """Build a lookup table of zero-argument accessors, one per query name.

        See :class:`~querycache.accessors.QueryAccessors`.
        """
        from querycache.accessors import QueryAccessors

        return QueryAccessors(self, fetch_fn)

    # ------------------------------------------------------------------ #
    # Invalidation
    # ------------------------------------------------------------------ #

    def clear_all(self) -> None:
        """Delete the entry file of every registered query name.

        Names without a file are skipped. The cache directory itself is left
        in place. Files in the directory that do not belong to a registered
        name are never touched.

        Raises:
            StorageError: On the first entry that exists but cannot be
                deleted. Entries after it are not attempted.
        """
        removed = self.purge()
        logger.info(
            "Cleared %d of %d cache entries in %s",
            len(removed),
            len(self._config.queries),
            self.cache_path,
        )

    def purge(self) -> list[str]:
        """Delete every registered entry like :meth:`clear_all` and report it.

        Returns:
            The names whose file was actually deleted by this call, in
            registration order. Names that had no file are left out.

        Raises:
            StorageError: As for :meth:`clear_all`.
        """
        return [
            name
            for name in self._config.queries
            if storage.remove_entry(storage.entry_path(self.cache_path, name))
        ]

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #

    def path_for(self, name: str) -> Path:
        """Return the entry file path of a registered query name.

        Raises:
            UnknownQueryError: If *name* is not registered.
        """
        if name not in self._config.queries:
            raise UnknownQueryError(name)
        return storage.entry_path(self.cache_path, name)

    def is_cached(self, name: str) -> bool:
        """Whether an entry file currently exists for *name*.

        Raises:
            UnknownQueryError: If *name* is not registered.
        """
        return self.path_for(name).is_file()

    def cached_names(self) -> list[str]:
        """Registered names whose entry file exists, in registration order."""
        return [name for name in self._config.queries if self.is_cached(name)]

    def entries(self) -> list[EntryInfo]:
        """Describe every registered query name and the state of its entry."""
        infos = []
        for name, params in self._config.queries.items():
            path = storage.entry_path(self.cache_path, name)
            size = storage.entry_size(path)
            infos.append(
                EntryInfo(
                    name=name,
                    path=path,
                    cached=size is not None,
                    size=size,
                    fetch_parameters=params,
                )
            )
        return infos

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``directory`` (str path), ``registered`` (number
            of query names), ``cached`` (number of present entries) and
            ``size_bytes`` (total size of present entries).
        """
        infos = self.entries()
        present = [info for info in infos if info.cached]
        return {
            "directory": str(self.cache_path),
            "registered": len(infos),
            "cached": len(present),
            "size_bytes": sum(info.size or 0 for info in present),
        }

    def _fetch_parameters(self, name: str) -> Any:
        queries = self._config.queries
        if not queries:
            raise ConfigurationError(
                f"Cannot look up '{name}': no queries are registered for {self.cache_path}"
            )
        if name not in queries:
            raise UnknownQueryError(name)
        params = queries[name]
        if params is None:
            raise ConfigurationError(f"Query '{name}' has no fetch parameters")
        return params

    def __repr__(self) -> str:
        return f"QueryCache(cache_path={str(self.cache_path)!r}, queries={self.query_names!r})"
