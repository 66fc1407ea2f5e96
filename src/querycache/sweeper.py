"""Invalidation trigger for mutating operations.

Cached query results go stale as soon as the underlying data changes. The
host application is responsible for noticing that; :func:`invalidates`
gives it one line to do so::

    @invalidates(book_queries)
    def update_book(session, book_id, **changes):
        ...

After ``update_book`` returns normally every given cache is cleared with
:meth:`~querycache.cache.QueryCache.clear_all`. If it raises, nothing is
cleared and the exception propagates.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Callable, TypeVar

if TYPE_CHECKING:
    from querycache.cache import QueryCache

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def invalidates(*caches: "QueryCache") -> Callable[[F], F]:
    """Decorate a mutating function so that it clears *caches* on success.

    Args:
        *caches: Caches whose entries the decorated function makes stale.

    Returns:
        A decorator preserving the wrapped function's signature and return
        value.

    Raises:
        ValueError: If no cache is given.
    """
    if not caches:
        raise ValueError("invalidates() needs at least one cache")

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            result = func(*args, **kwargs)
            for cache in caches:
                logger.debug("%s invalidated %r", func.__qualname__, cache)
                cache.clear_all()
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
