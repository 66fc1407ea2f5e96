"""Tests for querycache.sweeper -- clearing caches after mutations."""

from __future__ import annotations

from pathlib import Path

import pytest

from querycache.cache import QueryCache
from querycache.sweeper import invalidates


class TestInvalidates:
    def test_clears_after_success(self, cache: QueryCache, fetch) -> None:
        cache.get("all_books", fetch)

        @invalidates(cache)
        def add_book(title: str) -> str:
            return f"added {title}"

        assert add_book("Book D") == "added Book D"
        assert cache.cached_names() == []

    def test_next_lookup_refetches(self, cache: QueryCache, fetch) -> None:
        cache.get("all_books", fetch)

        @invalidates(cache)
        def remove_book() -> None:
            pass

        remove_book()
        cache.get("all_books", fetch)
        assert len(fetch.calls) == 2

    def test_failure_keeps_entries(self, cache: QueryCache, fetch) -> None:
        cache.get("all_books", fetch)

        @invalidates(cache)
        def update_book() -> None:
            raise RuntimeError("constraint violated")

        with pytest.raises(RuntimeError, match="constraint violated"):
            update_book()
        assert cache.cached_names() == ["all_books"]

    def test_multiple_caches(self, tmp_path: Path, fetch) -> None:
        books = QueryCache.configure(tmp_path / "books", {"all_books": {"order_by": "created_on"}})
        authors = QueryCache.configure(tmp_path / "authors", {"all_authors": {}})
        books.get("all_books", fetch)
        authors.get("all_authors", fetch)

        @invalidates(books, authors)
        def merge_authors() -> None:
            pass

        merge_authors()
        assert books.cached_names() == []
        assert authors.cached_names() == []

    def test_preserves_metadata(self, cache: QueryCache) -> None:
        @invalidates(cache)
        def destroy_book(book_id: int) -> None:
            """Delete a book."""

        assert destroy_book.__name__ == "destroy_book"
        assert destroy_book.__doc__ == "Delete a book."

    def test_requires_a_cache(self) -> None:
        with pytest.raises(ValueError):
            invalidates()
