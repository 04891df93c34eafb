"""Filtering and prioritisation of repository listings before extraction."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence

from ..config import DEFAULT_EXCLUDED_SEGMENTS, DEFAULT_MAX_FILES
from ..models import RepositoryFile

SOURCE_EXTENSIONS = (".tsx", ".jsx", ".ts", ".js")
LOWEST_PRIORITY = 11

_ROUTER_PAGE = re.compile(r"(?:^|/)app/(?:.*/)?page\.(?:tsx|jsx)$")
_LEGACY_PAGE = re.compile(r"(?:^|/)pages/.*\.(?:tsx|jsx)$")
_ROUTER_LAYOUT = re.compile(r"(?:^|/)app/(?:.*/)?layout\.(?:tsx|jsx)$")
_ROUTER_SPECIAL = re.compile(r"(?:^|/)app/(?:.*/)?(?:loading|error|not-found)\.(?:tsx|jsx)$")
_API_SEGMENT = re.compile(r"(?:^|/)api/")


def _in_directory(path: str, *names: str) -> bool:
    wrapped = f"/{path}"
    return any(f"/{name}/" in wrapped for name in names)


def priority_rank(path: str) -> int:
    """Return the ordering rank of a candidate path; lower ranks are analysed first."""
    if _ROUTER_PAGE.search(path):
        return 1
    if (
        _LEGACY_PAGE.search(path)
        and "_app." not in path
        and "_document." not in path
        and not _API_SEGMENT.search(path)
    ):
        return 2
    if _ROUTER_LAYOUT.search(path):
        return 3
    if "_app." in path or "_document." in path:
        return 4
    if _ROUTER_SPECIAL.search(path):
        return 5
    if _in_directory(path, "components"):
        return 6
    if _in_directory(path, "hooks"):
        return 7
    if _in_directory(path, "context"):
        return 8
    if _in_directory(path, "lib", "utils"):
        return 9
    if path.endswith((".config.js", ".config.ts")):
        return 10
    return LOWEST_PRIORITY


def is_excluded(path: str, segments: Sequence[str] = DEFAULT_EXCLUDED_SEGMENTS) -> bool:
    """True when any path segment is a build artefact or dependency directory."""
    excluded = set(segments)
    return any(part in excluded for part in path.split("/"))


def filter_tree(
    files: Iterable[RepositoryFile],
    segments: Sequence[str] = DEFAULT_EXCLUDED_SEGMENTS,
) -> List[RepositoryFile]:
    """Return the listing used for the navigable file tree."""
    return [item for item in files if not is_excluded(item.path, segments)]


def select_candidates(
    files: Iterable[RepositoryFile],
    segments: Sequence[str] = DEFAULT_EXCLUDED_SEGMENTS,
) -> List[RepositoryFile]:
    """Return source blobs eligible for extraction, ordered by priority rank.

    ``sorted`` is stable, so files sharing a rank keep their listing order.
    """
    candidates = [
        item
        for item in files
        if item.is_blob
        and item.path.endswith(SOURCE_EXTENSIONS)
        and not is_excluded(item.path, segments)
    ]
    return sorted(candidates, key=lambda item: priority_rank(item.path))


def cap_candidates(
    candidates: Sequence[RepositoryFile], max_files: int = DEFAULT_MAX_FILES
) -> List[RepositoryFile]:
    """Truncate the ordered candidates; anything past the cap is never analysed."""
    return list(candidates[: max(max_files, 0)])


__all__ = [
    "LOWEST_PRIORITY",
    "SOURCE_EXTENSIONS",
    "cap_candidates",
    "filter_tree",
    "is_excluded",
    "priority_rank",
    "select_candidates",
]
