"""Versioned JSON codec for cache entry files.

Each entry file holds one UTF-8 JSON document::

    {"format": "querycache", "version": 1, "value": <result>}

Only JSON-native values are accepted so that ``decode(encode(v)) == v``
holds exactly: ``None``, ``bool``, ``int``, finite ``float``, ``str``
without lone surrogates, ``list`` and ``dict`` with ``str`` keys, nested at
most :data:`MAX_NESTING` containers deep. Tuples, sets, non-string keys,
NaN/Infinity, self-referencing containers and arbitrary objects are
rejected up front rather than being written in a form that cannot be read
back.

Decoding parses with :func:`json.loads` and checks the header through
:class:`~querycache.models.CacheEnvelope`, so that a foreign or
future-versioned file is reported instead of misread.
"""

from __future__ import annotations

import json
import math
from typing import Any

from pydantic import ValidationError

from querycache.exceptions import DeserializationError, SerializationError
from querycache.models import ENVELOPE_FORMAT, ENVELOPE_VERSION, CacheEnvelope

MAX_NESTING = 512
"""Deepest container nesting accepted inside a stored value."""

_LEAVE = object()


def encode(value: Any) -> bytes:
    """Serialise *value* into envelope bytes.

    Args:
        value: The result to store.

    Returns:
        UTF-8 encoded JSON envelope.

    Raises:
        SerializationError: If *value* (or anything nested in it) is not a
            JSON-native value, refers to itself, nests deeper than
            :data:`MAX_NESTING`, or holds a string that is not valid UTF-8.
    """
    _check_encodable(value)
    document = {"format": ENVELOPE_FORMAT, "version": ENVELOPE_VERSION, "value": value}
    try:
        return json.dumps(document, ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as exc:
        # UnicodeEncodeError (lone surrogates) is a ValueError.
        raise SerializationError(f"Cannot encode result: {exc}") from exc


def decode(data: bytes) -> Any:
    """Deserialise envelope bytes produced by :func:`encode`.

    Args:
        data: Raw file contents.

    Returns:
        The stored result value.

    Raises:
        DeserializationError: If the bytes are not valid UTF-8 JSON, or the
            envelope has the wrong format tag or an unsupported version.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DeserializationError(f"Entry is not valid UTF-8: {exc}") from exc
    if not text.strip():
        raise DeserializationError("Entry is empty")

    try:
        document = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise DeserializationError(f"Entry is not valid JSON: {exc}") from exc

    try:
        envelope = CacheEnvelope.model_validate(document)
    except ValidationError as exc:
        raise DeserializationError(f"Invalid cache envelope: {exc}") from exc
    return envelope.value


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


def _check_encodable(value: Any) -> None:
    """Reject anything that would not survive a JSON round-trip.

    Walks the value with an explicit stack so that deep or cyclic input
    fails with :class:`SerializationError` instead of exhausting the
    interpreter's recursion limit. ``active`` holds the ids of the
    containers on the current path; shared (non-cyclic) sub-values are
    allowed.
    """
    active: set[int] = set()
    stack: list[tuple[Any, str, int]] = [(value, "value", 0)]
    while stack:
        item, where, depth = stack.pop()
        if item is _LEAVE:
            active.discard(depth)
            continue

        if item is None or isinstance(item, (bool, int, str)):
            continue
        if isinstance(item, float):
            if not math.isfinite(item):
                raise SerializationError(f"Cannot encode non-finite float at {where}")
            continue
        if not isinstance(item, (list, dict)):
            raise SerializationError(
                f"Cannot encode value of type {type(item).__name__} at {where}"
            )

        if depth >= MAX_NESTING:
            raise SerializationError(
                f"Cannot encode value nested deeper than {MAX_NESTING} levels at {where[:80]}..."
            )
        if id(item) in active:
            raise SerializationError(f"Cannot encode self-referencing value at {where[:80]}")
        active.add(id(item))
        # The id is released once every child has been checked.
        stack.append((_LEAVE, where, id(item)))

        if isinstance(item, list):
            for i, child in enumerate(item):
                stack.append((child, f"{where}[{i}]", depth + 1))
        else:
            for key, child in item.items():
                if not isinstance(key, str):
                    raise SerializationError(
                        f"Cannot encode non-string key {key!r} at {where}"
                    )
                stack.append((child, f"{where}[{key!r}]", depth + 1))
