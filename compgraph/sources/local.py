"""Repository source backed by a local checkout."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, List, Sequence

from ..config import DEFAULT_EXCLUDED_SEGMENTS
from ..errors import FileFetchError, UpstreamFetchError
from ..models import RepositoryFile

_VCS_DIRS = frozenset({".git", ".hg", ".svn"})


@dataclass(frozen=True)
class _IgnorePattern:
    """One `.gitignore` line, reduced to what the tree walk needs."""

    glob: str
    negated: bool
    dirs_only: bool
    rooted: bool

    @classmethod
    def parse(cls, line: str) -> "_IgnorePattern | None":
        negated = line.startswith("!")
        body = line[1:] if negated else line
        dirs_only = body.endswith("/")
        body = body.strip("/")
        if not body:
            return None
        # A slash anywhere but the end pins the pattern to the checkout root.
        return cls(body, negated, dirs_only, "/" in line.rstrip("/"))

    def hits(self, rel_path: str, is_dir: bool) -> bool:
        if self.dirs_only and not is_dir:
            return False
        if self.rooted:
            return fnmatchcase(rel_path, self.glob)
        return fnmatchcase(rel_path.rsplit("/", 1)[-1], self.glob)


def _read_ignore_file(root: Path) -> List[_IgnorePattern]:
    path = root / ".gitignore"
    if not path.is_file():
        return []
    lines = (line.strip() for line in path.read_text(encoding="utf-8").splitlines())
    parsed = (_IgnorePattern.parse(line) for line in lines if line and not line.startswith("#"))
    return [pattern for pattern in parsed if pattern is not None]


def _ignored(rel_path: str, is_dir: bool, patterns: Sequence[_IgnorePattern]) -> bool:
    verdict = False
    for pattern in patterns:
        if pattern.hits(rel_path, is_dir):
            verdict = not pattern.negated
    return verdict


def _list_tree(root: Path, pruned: Iterable[str]) -> List[RepositoryFile]:
    """Walk the checkout, skipping pruned and ignored directories entirely."""
    skip = _VCS_DIRS | frozenset(pruned)
    patterns = _read_ignore_file(root)
    directories: List[RepositoryFile] = []
    blobs: List[RepositoryFile] = []

    for dirpath, dirnames, filenames in os.walk(root):
        here = Path(dirpath)
        prefix = here.relative_to(root).as_posix()
        prefix = "" if prefix == "." else f"{prefix}/"

        dirnames[:] = [
            name
            for name in sorted(dirnames)
            if name not in skip and not _ignored(prefix + name, True, patterns)
        ]
        directories.extend(
            RepositoryFile(path=prefix + name, kind="tree", url=(here / name).as_uri())
            for name in dirnames
        )
        blobs.extend(
            RepositoryFile(path=prefix + name, kind="blob", url=(here / name).as_uri())
            for name in sorted(filenames)
            if not _ignored(prefix + name, False, patterns)
        )

    return directories + blobs


class LocalSource:
    """Serves a directory on disk through the repository source contract.

    ``owner``, ``repo`` and ``branch`` are accepted for interface parity and
    ignored; the working tree as it is on disk is analysed. Directories named
    in ``exclude_segments`` are never descended into.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        exclude_segments: Sequence[str] = DEFAULT_EXCLUDED_SEGMENTS,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.exclude_segments = tuple(exclude_segments)

    async def fetch_tree(self, owner: str, repo: str, branch: str) -> List[RepositoryFile]:
        if not self.root.is_dir():
            raise UpstreamFetchError(f"Repository path not found: {self.root}")
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, _list_tree, self.root, self.exclude_segments
            )
        except OSError as exc:
            raise UpstreamFetchError(f"Failed to list {self.root}: {exc}") from exc

    async def fetch_file_content(self, owner: str, repo: str, path: str, branch: str) -> str:
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise FileFetchError(path, "Path escapes the repository root")
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._read, target)
        except OSError as exc:
            raise FileFetchError(path, f"Failed to read file: {exc}") from exc

    @staticmethod
    def _read(path: Path) -> str:
        return path.read_text(encoding="utf-8", errors="replace")


__all__ = ["LocalSource"]
