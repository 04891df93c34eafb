"""Contract for collaborators that supply repository listings and file contents."""

from typing import List, Protocol

from ..models import RepositoryFile


class RepositorySource(Protocol):
    """Supplies the raw inputs of an analysis session.

    ``fetch_tree`` failures are fatal to a session and must surface as
    ``UpstreamFetchError``; ``fetch_file_content`` failures only skip the file.
    """

    async def fetch_tree(self, owner: str, repo: str, branch: str) -> List[RepositoryFile]:
        """Return the full recursive listing of the repository."""

    async def fetch_file_content(self, owner: str, repo: str, path: str, branch: str) -> str:
        """Return the decoded text of one file."""
