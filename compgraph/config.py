"""Configuration loading for compgraph (.compgraph.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".compgraph.yml"

DEFAULT_MAX_FILES = 100
DEFAULT_EXCLUDED_SEGMENTS = ("node_modules", ".next", "dist", "build")
DEFAULT_API_URL = "https://api.github.com"
ENV_TOKEN_KEYS = ("COMPGRAPH_GITHUB_TOKEN", "GITHUB_TOKEN")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class AnalysisConfig:
    """Limits and switches for the extraction pipeline."""

    max_files: int = DEFAULT_MAX_FILES
    include_content: bool = False
    exclude_segments: List[str] = field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_SEGMENTS)
    )


@dataclass
class GitHubConfig:
    """Settings for the GitHub repository source."""

    api_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    request_timeout: float = 30.0


@dataclass
class CacheConfig:
    """Result cache location and expiry."""

    enabled: bool = True
    directory: Path = Path(".cache") / "repos"
    max_age_hours: float = 24.0


@dataclass
class ServiceConfig:
    """Bind address for `compgraph serve`."""

    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class CompGraphConfig:
    """Represents the settings defined in .compgraph.yml."""

    root: Path
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)


def load_config(config_path: Path) -> CompGraphConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    analysis = AnalysisConfig()
    analysis_data = _as_dict(data.get("analysis"))
    if analysis_data:
        max_files = _as_int(analysis_data.get("max_files"))
        if max_files is not None:
            if max_files < 0:
                raise ConfigError("analysis.max_files must not be negative")
            analysis.max_files = max_files
        include_content = _as_bool(analysis_data.get("include_content"))
        if include_content is not None:
            analysis.include_content = include_content
        if "exclude_segments" in analysis_data:
            analysis.exclude_segments = _as_str_list(analysis_data.get("exclude_segments"))

    github = GitHubConfig()
    github_data = _as_dict(data.get("github"))
    if github_data:
        github.api_url = (_as_str(github_data.get("api_url")) or DEFAULT_API_URL).rstrip("/")
        github.token = _as_str(github_data.get("token"))
        timeout = _as_float(github_data.get("request_timeout"))
        if timeout is not None:
            github.request_timeout = timeout
    if not github.token:
        github.token = _first_env_value(ENV_TOKEN_KEYS)

    cache = CacheConfig()
    cache_data = _as_dict(data.get("cache"))
    if cache_data:
        enabled = _as_bool(cache_data.get("enabled"))
        if enabled is not None:
            cache.enabled = enabled
        directory = _as_str(cache_data.get("directory"))
        if directory:
            cache.directory = Path(directory)
        max_age = _as_float(cache_data.get("max_age_hours"))
        if max_age is not None:
            cache.max_age_hours = max_age
    if not cache.directory.is_absolute():
        cache.directory = root / cache.directory

    service = ServiceConfig()
    service_data = _as_dict(data.get("service"))
    if service_data:
        service.host = _as_str(service_data.get("host")) or service.host
        port = _as_int(service_data.get("port"))
        if port is not None:
            service.port = port

    return CompGraphConfig(
        root=root,
        analysis=analysis,
        github=github,
        cache=cache,
        service=service,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    return loaded


def _first_env_value(keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "AnalysisConfig",
    "CacheConfig",
    "CompGraphConfig",
    "ConfigError",
    "GitHubConfig",
    "ServiceConfig",
    "load_config",
]
