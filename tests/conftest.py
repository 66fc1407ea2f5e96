"""Shared test fixtures for querycache.

Provides a temporary cache directory, the book-catalogue query set used
throughout the suite, a call-recording fetch function, and CLI helpers.
These fixtures are automatically discovered by pytest and available to all
test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from querycache.cache import QueryCache
from querycache.models import CacheConfiguration
from querycache.output import reset_output


BOOK_QUERIES: dict[str, Any] = {
    "all_books": {"order_by": "created_on"},
    "banned_books": {
        "columns": ["author", "title"],
        "where": {"status": "banned"},
        "order_by": "title",
    },
}

BOOK_RESULTS: dict[str, Any] = {
    "all_books": ["Book A", "Book B"],
    "banned_books": [{"author": "Anon", "title": "Book C"}],
}


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fetch recording
# ---------------------------------------------------------------------------


class RecordingFetch:
    """Fetch function that returns canned results and records every call."""

    def __init__(self, results: dict[str, Any] | None = None) -> None:
        self.results = dict(BOOK_RESULTS if results is None else results)
        self.calls: list[Any] = []

    def __call__(self, params: Any) -> Any:
        self.calls.append(params)
        for name, registered in BOOK_QUERIES.items():
            if registered == params:
                return self.results.get(name)
        return self.results.get("default")


@pytest.fixture
def fetch() -> RecordingFetch:
    return RecordingFetch()


@pytest.fixture
def make_fetch():
    """Factory for RecordingFetch instances with custom results."""
    return RecordingFetch


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """A cache directory that does not exist yet."""
    return tmp_path / "cache" / "queries"


@pytest.fixture
def book_config(cache_dir: Path) -> CacheConfiguration:
    return CacheConfiguration(cache_path=cache_dir, queries=BOOK_QUERIES)


@pytest.fixture
def cache(book_config: CacheConfiguration) -> QueryCache:
    """A QueryCache over the book queries with an empty directory."""
    return QueryCache(book_config)


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
