"""Per-query accessor table.

:class:`QueryAccessors` turns a :class:`~querycache.cache.QueryCache` and a
single fetch function into one zero-argument callable per registered query
name, so call sites read like named finders::

    finders = books.accessors(repository.fetch)
    finders.all_books()
    finders["banned_books"]()

The table is built once from the configuration and is read-only.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, Callable

from querycache.exceptions import UnknownQueryError

if TYPE_CHECKING:
    from querycache.cache import FetchFn, QueryCache


class QueryAccessors(Mapping):
    """Read-only mapping of query name -> zero-argument accessor.

    Each accessor is equivalent to ``cache.get(name, fetch_fn)``. Accessors
    are also reachable as attributes unless the name collides with an
    attribute of the mapping itself (``keys``, ``items``, ...); item access
    always works.

    Args:
        cache: The cache to read through.
        fetch_fn: Fetch function shared by every accessor.
    """

    def __init__(self, cache: "QueryCache", fetch_fn: "FetchFn") -> None:
        self._cache = cache
        self._fetch_fn = fetch_fn
        self._accessors: dict[str, Callable[[], Any]] = {
            name: self._make_accessor(name) for name in cache.query_names
        }

    def _make_accessor(self, name: str) -> Callable[[], Any]:
        def accessor() -> Any:
            return self._cache.get(name, self._fetch_fn)

        accessor.__name__ = name
        accessor.__qualname__ = f"{type(self).__name__}.{name}"
        accessor.__doc__ = f"Return the cached result of query '{name}'."
        return accessor

    def __getitem__(self, name: str) -> Callable[[], Any]:
        try:
            return self._accessors[name]
        except KeyError:
            raise UnknownQueryError(name) from None

    def get(self, name: str, default: Any = None) -> Any:
        return self._accessors.get(name, default)

    def __getattr__(self, name: str) -> Callable[[], Any]:
        # Only called for names not found through normal attribute lookup.
        accessors = self.__dict__.get("_accessors", {})
        if name in accessors:
            return accessors[name]
        raise AttributeError(f"{type(self).__name__!r} has no query {name!r}")

    def __iter__(self) -> Iterator[str]:
        return iter(self._accessors)

    def __len__(self) -> int:
        return len(self._accessors)

    def __contains__(self, name: object) -> bool:
        return name in self._accessors

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._accessors))

    def __repr__(self) -> str:
        return f"QueryAccessors({list(self._accessors)!r})"
