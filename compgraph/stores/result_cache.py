"""Persistent cache for completed repository analyses."""

from __future__ import annotations

import hashlib
import json
import shutil
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

from ..logging import get_logger
from ..models import AnalysisResult, ComponentMetadata, RepositoryFile, RepositoryRef

_CACHE_VERSION = 1

logger = get_logger("stores.result_cache")


def cache_key(repo_url: str, branch: str = "main") -> str:
    """Hash the normalised URL and branch into a stable file name."""
    normalised = repo_url.strip().lower()
    if normalised.endswith(".git"):
        normalised = normalised[: -len(".git")]
    return hashlib.sha256(f"{normalised}#{branch}".encode("utf-8")).hexdigest()


@dataclass
class CachedAnalysis:
    """A stored analysis together with when it was produced."""

    repo_url: str
    result: AnalysisResult
    timestamp: datetime


@dataclass
class CacheStats:
    total_files: int
    total_size: int
    oldest_file: Optional[datetime] = None
    newest_file: Optional[datetime] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "totalFiles": self.total_files,
            "totalSizeMB": round(self.total_size / (1024 * 1024), 2),
            "oldestFile": _isoformat(self.oldest_file),
            "newestFile": _isoformat(self.newest_file),
        }


class ResultCache:
    """Stores linked component graphs keyed by repository URL and branch."""

    def __init__(self, directory: Path, *, max_age: timedelta = timedelta(hours=24)) -> None:
        self.directory = directory
        self.max_age = max_age

    def get(self, repo_url: str, branch: str = "main") -> Optional[CachedAnalysis]:
        path = self._path_for(repo_url, branch)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", path.name, exc)
            return None

        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            logger.info("Discarding cache entry %s with mismatched version", path.name)
            path.unlink(missing_ok=True)
            return None

        try:
            timestamp = datetime.fromisoformat(str(data["timestamp"]).replace("Z", "+00:00"))
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=UTC)
            cached = CachedAnalysis(
                repo_url=str(data["repoUrl"]),
                result=_result_from_dict(data),
                timestamp=timestamp,
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed cache entry %s: %s", path.name, exc)
            return None

        age = datetime.now(UTC) - cached.timestamp
        if age > self.max_age:
            logger.info("Cache entry for %s#%s expired (%s old)", repo_url, branch, age)
            return None
        return cached

    def store(self, repo_url: str, result: AnalysisResult) -> Path:
        branch = result.repository.branch
        payload = {
            "version": _CACHE_VERSION,
            "repoUrl": repo_url,
            "branch": branch,
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "repository": result.repository.to_dict(),
            "components": [component.to_dict() for component in result.components],
            "allFiles": [item.to_dict() for item in result.all_files],
        }
        path = self._path_for(repo_url, branch)
        self.directory.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info(
            "Cached %d components for %s#%s", len(result.components), repo_url, branch
        )
        return path

    def stats(self) -> CacheStats:
        stats = CacheStats(total_files=0, total_size=0)
        if not self.directory.is_dir():
            return stats
        for entry in self.directory.glob("*.json"):
            stat_result = entry.stat()
            modified = datetime.fromtimestamp(stat_result.st_mtime, tz=UTC)
            stats.total_files += 1
            stats.total_size += stat_result.st_size
            if stats.oldest_file is None or modified < stats.oldest_file:
                stats.oldest_file = modified
            if stats.newest_file is None or modified > stats.newest_file:
                stats.newest_file = modified
        return stats

    def clear(self) -> None:
        if self.directory.exists():
            shutil.rmtree(self.directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.info("Cache cleared at %s", self.directory)

    def _path_for(self, repo_url: str, branch: str) -> Path:
        return self.directory / f"{cache_key(repo_url, branch)}.json"


def _result_from_dict(data: Dict[str, object]) -> AnalysisResult:
    repository = data["repository"]
    if not isinstance(repository, dict):
        raise TypeError("repository must be a mapping")
    components_payload = data.get("components") or []
    files_payload = data.get("allFiles") or []
    if not isinstance(components_payload, list) or not isinstance(files_payload, list):
        raise TypeError("components and allFiles must be lists")
    components: List[ComponentMetadata] = [
        ComponentMetadata.from_dict(item) for item in components_payload
    ]
    all_files: List[RepositoryFile] = [RepositoryFile.from_dict(item) for item in files_payload]
    return AnalysisResult(
        repository=RepositoryRef(
            owner=str(repository["owner"]),
            name=str(repository["name"]),
            branch=str(repository.get("branch", "main")),
        ),
        components=components,
        all_files=all_files,
    )


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


__all__ = ["CacheStats", "CachedAnalysis", "ResultCache", "cache_key"]
