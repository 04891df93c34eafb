"""GitHub REST API adapter for repository listings and file contents."""

from __future__ import annotations

import asyncio
import base64
import binascii
import http.client
import json
import re
from functools import partial
from typing import Any, Dict, List, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..config import DEFAULT_API_URL, GitHubConfig
from ..errors import FileFetchError, UpstreamFetchError, ValidationError
from ..logging import get_logger
from ..models import RepositoryFile

_REPO_URL = re.compile(r"github\.com/([^/]+)/([^/]+)")


def parse_repo_url(repo_url: str | None) -> Tuple[str, str]:
    """Return ``(owner, repo)`` from a GitHub URL, dropping any ``.git`` suffix."""
    if not repo_url:
        raise ValidationError("Repository URL is required")
    match = _REPO_URL.search(repo_url)
    if not match:
        raise ValidationError("Invalid GitHub repository URL")
    owner, repo = match.group(1), match.group(2)
    repo = re.sub(r"\.git$", "", repo)
    return owner, repo


class _HTTPFailure(Exception):
    def __init__(self, status: Optional[int], reason: str) -> None:
        super().__init__(reason)
        self.status = status
        self.reason = reason


class GitHubSource:
    """Fetches trees and blobs from the GitHub API.

    Requests are blocking ``urllib`` calls pushed onto the default executor so
    that a session only suspends while waiting on the network.
    """

    def __init__(
        self,
        *,
        api_url: str = DEFAULT_API_URL,
        token: str | None = None,
        request_timeout: float = 30.0,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.request_timeout = request_timeout
        self.request_count = 0
        self.logger = get_logger("sources.github")

    @classmethod
    def from_config(cls, config: GitHubConfig) -> "GitHubSource":
        return cls(
            api_url=config.api_url,
            token=config.token,
            request_timeout=config.request_timeout,
        )

    async def fetch_tree(self, owner: str, repo: str, branch: str) -> List[RepositoryFile]:
        url = f"{self.api_url}/repos/{owner}/{repo}/git/trees/{quote(branch, safe='')}?recursive=1"
        self.logger.info("Fetching repository tree: %s", url)
        try:
            payload = await self._get_json_async(url)
        except _HTTPFailure as exc:
            self.logger.warning("Tree fetch failed: %s %s", exc.status, exc.reason)
            if exc.status == 404:
                raise UpstreamFetchError(
                    "Repository not found or branch does not exist", status=404
                ) from exc
            if exc.status is None:
                raise UpstreamFetchError(f"GitHub API error: {exc.reason}") from exc
            raise UpstreamFetchError(
                f"GitHub API error: {exc.status}", status=exc.status
            ) from exc

        tree = payload.get("tree")
        if not isinstance(tree, list):
            raise UpstreamFetchError("GitHub API returned no tree for the repository")
        if payload.get("truncated"):
            self.logger.warning("Tree listing for %s/%s was truncated by GitHub", owner, repo)

        files: List[RepositoryFile] = []
        for item in tree:
            if not isinstance(item, dict) or not isinstance(item.get("path"), str):
                continue
            files.append(RepositoryFile.from_dict(item))
        return files

    async def fetch_file_content(self, owner: str, repo: str, path: str, branch: str) -> str:
        url = (
            f"{self.api_url}/repos/{owner}/{repo}/contents/{quote(path)}"
            f"?ref={quote(branch, safe='')}"
        )
        self.logger.debug("Fetching: %s", url)
        try:
            payload = await self._get_json_async(url)
        except _HTTPFailure as exc:
            raise FileFetchError(
                path, f"Failed to fetch file content: {exc.status or exc.reason}", status=exc.status
            ) from exc

        encoded = payload.get("content")
        if not isinstance(encoded, str) or not encoded:
            raise FileFetchError(path, "No content found in file", status=404)
        try:
            return base64.b64decode(encoded).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as exc:
            raise FileFetchError(path, "File content is not valid base64") from exc

    async def _get_json_async(self, url: str) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self._get_json, url))

    def _get_json(self, url: str) -> Dict[str, Any]:
        self.request_count += 1
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        request = Request(url, headers=headers, method="GET")
        try:
            with urlopen(request, timeout=self.request_timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            raise _HTTPFailure(exc.code, str(exc.reason)) from exc
        except URLError as exc:
            raise _HTTPFailure(None, str(exc.reason)) from exc
        except (OSError, http.client.HTTPException) as exc:
            # Timeouts, dropped connections and truncated bodies after the status line.
            raise _HTTPFailure(None, str(exc) or type(exc).__name__) from exc

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise _HTTPFailure(None, "invalid JSON response") from exc
        if not isinstance(payload, dict):
            raise _HTTPFailure(None, "unexpected response shape")
        return payload


__all__ = ["GitHubSource", "parse_repo_url"]
