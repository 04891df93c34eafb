"""In-memory repository source for session and service tests."""

from __future__ import annotations

import textwrap
from typing import Iterable, List, Mapping, Optional

from compgraph.errors import FileFetchError
from compgraph.models import RepositoryFile


class FakeSource:
    """Serves a fixed mapping of `path -> contents` and records every call."""

    def __init__(
        self,
        files: Mapping[str, str],
        *,
        directories: Iterable[str] = (),
        failing: Iterable[str] = (),
        errors: Optional[Mapping[str, Exception]] = None,
        tree_error: Optional[Exception] = None,
    ) -> None:
        self.files = {
            path: textwrap.dedent(content).lstrip("\n") for path, content in files.items()
        }
        self.directories = list(directories)
        self.failing = set(failing)
        self.errors = dict(errors or {})
        self.tree_error = tree_error
        self.tree_calls: List[tuple[str, str, str]] = []
        self.fetched: List[str] = []

    async def fetch_tree(self, owner: str, repo: str, branch: str) -> List[RepositoryFile]:
        self.tree_calls.append((owner, repo, branch))
        if self.tree_error is not None:
            raise self.tree_error
        listing = [
            RepositoryFile(path=path, kind="tree", url=f"https://example.test/tree/{path}")
            for path in self.directories
        ]
        listing.extend(
            RepositoryFile(path=path, kind="blob", url=f"https://example.test/blob/{path}")
            for path in self.files
        )
        return listing

    async def fetch_file_content(self, owner: str, repo: str, path: str, branch: str) -> str:
        self.fetched.append(path)
        if path in self.errors:
            raise self.errors[path]
        if path in self.failing:
            raise FileFetchError(path, "Failed to fetch file content: 500", status=500)
        if path not in self.files:
            raise FileFetchError(path, "No content found in file", status=404)
        return self.files[path]


__all__ = ["FakeSource"]
