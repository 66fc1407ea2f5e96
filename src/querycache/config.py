"""Load a :class:`~querycache.models.CacheConfiguration` from a file.

Configuration files are JSON or YAML documents with the same shape as the
model::

    # querycache.yaml
    cache_path: tmp/cache/queries
    on_corrupt: refetch
    queries:
      all_books:
        order_by: created_on
      banned_books:
        columns: [author, title]
        where: {status: banned}
        order_by: title

A relative ``cache_path`` is resolved against the directory holding the
file, so the same file works regardless of the working directory.

The two public functions are:

* :func:`load_configuration` -- Read, parse and validate one file.
* :func:`find_configuration` -- Locate the project-local file in a
  directory.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from querycache.exceptions import ConfigurationError
from querycache.models import CacheConfiguration

CONFIG_FILENAMES = ("querycache.yaml", "querycache.yml", "querycache.json")


def find_configuration(directory: Optional[Path] = None) -> Optional[Path]:
    """Return the first project config file found in *directory*.

    Looks for ``querycache.yaml``, ``querycache.yml`` and
    ``querycache.json`` in that order.

    Args:
        directory: Directory to search. Defaults to the working directory.

    Returns:
        The path of the file, or ``None`` if none exists.
    """
    base = directory if directory is not None else Path.cwd()
    for filename in CONFIG_FILENAMES:
        candidate = base / filename
        if candidate.is_file():
            return candidate
    return None


def load_configuration(path: str | Path) -> CacheConfiguration:
    """Load and validate a cache configuration file.

    Args:
        path: A ``.json``, ``.yaml`` or ``.yml`` file. Other extensions are
            parsed as JSON first, then YAML.

    Returns:
        The validated configuration, with ``cache_path`` made absolute
        relative to the file's directory.

    Raises:
        ConfigurationError: If the file is missing, empty, unparsable, not a
            mapping, or fails validation.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ConfigurationError(f"Configuration file not found: {file_path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"Configuration {file_path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Failed to read configuration {file_path}: {exc}") from exc

    if not content.strip():
        raise ConfigurationError(f"Configuration file is empty: {file_path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    data = _parse_content(content, hint=hint, source=file_path)

    cache_path = data.get("cache_path")
    if isinstance(cache_path, str) and cache_path.strip():
        resolved = Path(cache_path).expanduser()
        if not resolved.is_absolute():
            resolved = file_path.resolve().parent / resolved
        data["cache_path"] = str(resolved)

    try:
        return CacheConfiguration.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration at {file_path}: {exc}") from exc


def _parse_content(content: str, hint: str, source: Path) -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.

    Raises:
        ConfigurationError: If the content cannot be parsed as either format
            or is not a mapping.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
            return _require_mapping(result, source)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise ConfigurationError(f"Invalid JSON in {source}: {exc}") from exc

    try:
        result = yaml.safe_load(content)
        return _require_mapping(result, source)
    except yaml.YAMLError as exc:
        yaml_error = exc

    msg = f"Failed to parse {source} as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise ConfigurationError(msg)


def _require_mapping(result: Any, source: Path) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise ConfigurationError(f"Configuration in {source} must be a mapping (got {kind})")
    return result
