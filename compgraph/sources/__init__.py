"""Repository sources consumed by analysis sessions."""

from .base import RepositorySource
from .github import GitHubSource, parse_repo_url
from .local import LocalSource

__all__ = ["GitHubSource", "LocalSource", "RepositorySource", "parse_repo_url"]
