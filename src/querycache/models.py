"""Canonical Pydantic models shared across querycache modules.

This module is the single source of truth for data shapes in the project:

**Configuration** -- :class:`CacheConfiguration` and
:class:`CorruptEntryPolicy`. A configuration is built once per owning
entity type (for example a ``Book`` repository) and handed to
:class:`~querycache.cache.QueryCache` explicitly.

**Storage** -- :class:`CacheEnvelope`, the versioned wrapper persisted in
every entry file, and :class:`EntryInfo`, the inspection record returned by
:meth:`~querycache.cache.QueryCache.entries`.

All models use Pydantic v2.
"""

from __future__ import annotations

import copy
import enum
import types
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

ENVELOPE_FORMAT = "querycache"
ENVELOPE_VERSION = 1


# --- Configuration ---


class CorruptEntryPolicy(str, enum.Enum):
    """What :meth:`~querycache.cache.QueryCache.get` does with an entry it cannot decode.

    ``RAISE`` surfaces a :class:`~querycache.exceptions.CacheCorruptionError`.
    ``REFETCH`` logs a warning, treats the entry as a miss and overwrites it.
    """

    RAISE = "raise"
    REFETCH = "refetch"


def validate_query_name(name: Any) -> str:
    """Check that *name* can be used both as a query key and as a file name.

    Args:
        name: Candidate query name.

    Returns:
        The name unchanged.

    Raises:
        ValueError: If the name is empty, not a string, contains a path
            separator or NUL byte, or starts with a dot.
    """
    if not isinstance(name, str) or not name:
        raise ValueError(f"Query name must be a non-empty string, got {name!r}")
    if "/" in name or "\\" in name or "\x00" in name:
        raise ValueError(f"Query name {name!r} must not contain path separators")
    # Dot-prefixed names are reserved for in-flight temp files.
    if name.startswith("."):
        raise ValueError(f"Query name {name!r} must not start with '.'")
    return name


class CacheConfiguration(BaseModel):
    """Where a set of named queries is cached and how each one is fetched.

    ``queries`` maps a query name to its *fetch parameters*: opaque values
    handed unchanged to the fetch function on a cache miss. Registration
    order is preserved and drives the order of inspection output.

    The model is frozen and ``queries`` is a read-only copy of the mapping
    it was built from; build a new configuration to reconfigure.

    Example::

        CacheConfiguration(
            cache_path="/var/cache/books/queries",
            queries={
                "all_books": {"order_by": "created_on"},
                "banned_books": {
                    "columns": ["author", "title"],
                    "where": {"status": "banned"},
                    "order_by": "title",
                },
            },
        )
    """

    model_config = ConfigDict(frozen=True)

    cache_path: Path = Field(description="Directory holding one file per query name")
    queries: dict[str, Any] = Field(
        default_factory=dict,
        description="Query name -> fetch parameters passed to the fetch function",
    )
    on_corrupt: CorruptEntryPolicy = Field(
        default=CorruptEntryPolicy.RAISE,
        description="Behaviour when a stored entry cannot be decoded: raise, refetch",
    )

    @field_validator("cache_path", mode="before")
    @classmethod
    def _require_cache_path(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("cache_path is required")
        return value

    @field_validator("queries", mode="before")
    @classmethod
    def _check_queries(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, Mapping):
            value = dict(value)
            for name in value:
                validate_query_name(name)
        return value

    @field_validator("queries")
    @classmethod
    def _freeze_queries(cls, value: dict[str, Any]) -> Mapping[str, Any]:
        # Detach from the caller's dict so later edits to it have no effect.
        return types.MappingProxyType(copy.deepcopy(value))

    @field_serializer("queries")
    def _dump_queries(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)


# --- Storage ---


class CacheEnvelope(BaseModel):
    """Versioned wrapper stored in each entry file.

    Serialised as ``{"format": "querycache", "version": 1, "value": ...}``.
    ``value`` is whatever :func:`json.loads` produced; the encoding rules
    that keep it JSON-native live in :mod:`querycache.serializer`.
    """

    model_config = ConfigDict(extra="forbid")

    format: Literal["querycache"]
    version: Literal[1]
    value: Any


class EntryInfo(BaseModel):
    """Inspection record for one registered query name."""

    name: str
    path: Path
    cached: bool
    size: Optional[int] = Field(default=None, description="File size in bytes when cached")
    fetch_parameters: Any = None
