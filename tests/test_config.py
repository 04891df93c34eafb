"""Tests for compgraph.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from compgraph.config import (
    DEFAULT_API_URL,
    DEFAULT_EXCLUDED_SEGMENTS,
    DEFAULT_MAX_FILES,
    CompGraphConfig,
    ConfigError,
    load_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, CompGraphConfig)
    assert config.root == tmp_path.resolve()
    assert config.analysis.max_files == DEFAULT_MAX_FILES
    assert config.analysis.include_content is False
    assert config.analysis.exclude_segments == list(DEFAULT_EXCLUDED_SEGMENTS)
    assert config.github.api_url == DEFAULT_API_URL
    assert config.github.token is None
    assert config.cache.enabled is True
    assert config.cache.directory == tmp_path.resolve() / ".cache" / "repos"
    assert config.cache.max_age_hours == 24.0
    assert config.service.port == 8000


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".compgraph.yml"
    config_file.write_text(
        """
analysis:
  max_files: 25
  include_content: true
  exclude_segments: [node_modules, coverage]
github:
  api_url: "https://github.example.com/api/v3/"
  token: "ghp-test"
  request_timeout: 5
cache:
  enabled: "no"
  directory: "/var/tmp/compgraph"
  max_age_hours: 6
service:
  host: "127.0.0.1"
  port: 9000
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.analysis.max_files == 25
    assert config.analysis.include_content is True
    assert config.analysis.exclude_segments == ["node_modules", "coverage"]
    assert config.github.api_url == "https://github.example.com/api/v3"
    assert config.github.token == "ghp-test"
    assert config.github.request_timeout == 5.0
    assert config.cache.enabled is False
    assert config.cache.directory == Path("/var/tmp/compgraph")
    assert config.cache.max_age_hours == 6.0
    assert config.service.host == "127.0.0.1"
    assert config.service.port == 9000


def test_relative_cache_directory_resolves_against_root(tmp_path: Path) -> None:
    (tmp_path / ".compgraph.yml").write_text("cache:\n  directory: tmp/graphs\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.cache.directory == tmp_path.resolve() / "tmp" / "graphs"


def test_token_falls_back_to_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")

    assert load_config(tmp_path).github.token == "from-env"

    monkeypatch.setenv("COMPGRAPH_GITHUB_TOKEN", "preferred")

    assert load_config(tmp_path).github.token == "preferred"


def test_file_token_wins_over_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")
    (tmp_path / ".compgraph.yml").write_text("github:\n  token: from-file\n", encoding="utf-8")

    assert load_config(tmp_path).github.token == "from-file"


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".compgraph.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).analysis.max_files == DEFAULT_MAX_FILES


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    (tmp_path / ".compgraph.yml").write_text("analysis: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)


def test_non_mapping_root_raises(tmp_path: Path) -> None:
    (tmp_path / ".compgraph.yml").write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_negative_max_files_raises(tmp_path: Path) -> None:
    (tmp_path / ".compgraph.yml").write_text("analysis:\n  max_files: -1\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
