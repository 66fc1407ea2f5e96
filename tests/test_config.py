"""Tests for querycache.config -- loading configuration files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from querycache.config import find_configuration, load_configuration
from querycache.exceptions import ConfigurationError
from querycache.models import CorruptEntryPolicy


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


YAML_CONFIG = """\
cache_path: tmp/cache/queries
on_corrupt: refetch
queries:
  all_books:
    order_by: created_on
  banned_books:
    columns: [author, title]
    where: {status: banned}
    order_by: title
"""


# ---------------------------------------------------------------------------
# load_configuration
# ---------------------------------------------------------------------------


class TestLoadConfiguration:
    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "querycache.yaml"
        path.write_text(YAML_CONFIG, encoding="utf-8")

        config = load_configuration(path)

        assert list(config.queries) == ["all_books", "banned_books"]
        assert config.queries["banned_books"]["where"] == {"status": "banned"}
        assert config.on_corrupt is CorruptEntryPolicy.REFETCH

    def test_json(self, tmp_path: Path) -> None:
        path = _write_json(
            tmp_path / "querycache.json",
            {"cache_path": str(tmp_path / "q"), "queries": {"all_books": [1, 2]}},
        )
        config = load_configuration(path)
        assert config.cache_path == tmp_path / "q"
        assert config.queries == {"all_books": [1, 2]}

    def test_relative_cache_path_resolved_against_file(self, tmp_path: Path) -> None:
        path = tmp_path / "conf" / "querycache.yaml"
        path.parent.mkdir()
        path.write_text(YAML_CONFIG, encoding="utf-8")

        config = load_configuration(path)

        assert config.cache_path == (tmp_path / "conf").resolve() / "tmp" / "cache" / "queries"

    def test_absolute_cache_path_unchanged(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere"
        path = _write_json(tmp_path / "c.json", {"cache_path": str(target)})
        assert load_configuration(path).cache_path == target

    def test_unknown_extension_falls_back_to_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.conf"
        path.write_text(YAML_CONFIG, encoding="utf-8")
        assert "all_books" in load_configuration(path).queries

    def test_unknown_extension_json(self, tmp_path: Path) -> None:
        path = _write_json(tmp_path / "cache.conf", {"cache_path": "q", "queries": {}})
        assert load_configuration(path).queries == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_configuration(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "querycache.yaml"
        path.write_text("  \n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="empty"):
            load_configuration(path)

    def test_not_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_bytes(b"\xff\xfe")
        with pytest.raises(ConfigurationError, match="not valid UTF-8"):
            load_configuration(path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "querycache.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_configuration(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "querycache.yaml"
        path.write_text("cache_path: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_configuration(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "querycache.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_configuration(path)

    def test_missing_cache_path(self, tmp_path: Path) -> None:
        path = _write_json(tmp_path / "querycache.json", {"queries": {"all_books": {}}})
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_configuration(path)

    def test_bad_query_name(self, tmp_path: Path) -> None:
        path = _write_json(
            tmp_path / "querycache.json",
            {"cache_path": "q", "queries": {"../etc": {}}},
        )
        with pytest.raises(ConfigurationError):
            load_configuration(path)


# ---------------------------------------------------------------------------
# find_configuration
# ---------------------------------------------------------------------------


class TestFindConfiguration:
    def test_none_found(self, tmp_path: Path) -> None:
        assert find_configuration(tmp_path) is None

    def test_prefers_yaml_over_json(self, tmp_path: Path) -> None:
        (tmp_path / "querycache.json").write_text("{}")
        (tmp_path / "querycache.yaml").write_text("{}")
        assert find_configuration(tmp_path) == tmp_path / "querycache.yaml"

    def test_finds_json(self, tmp_path: Path) -> None:
        (tmp_path / "querycache.json").write_text("{}")
        assert find_configuration(tmp_path) == tmp_path / "querycache.json"

    def test_defaults_to_working_directory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "querycache.yml").write_text("{}")
        monkeypatch.chdir(tmp_path)
        assert find_configuration() == tmp_path / "querycache.yml"
