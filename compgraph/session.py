"""Streaming analysis session: fetch, extract, link and report one repository."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .analyzers import analyze_file, build_relationships
from .analyzers.filters import cap_candidates, filter_tree, select_candidates
from .config import DEFAULT_EXCLUDED_SEGMENTS, DEFAULT_MAX_FILES
from .errors import PerFileExtractionError, StreamClosedError, UpstreamFetchError
from .events import (
    SessionEvent,
    complete_event,
    component_event,
    error_event,
    files_event,
    progress_event,
    status_event,
)
from .logging import get_logger
from .models import AnalysisResult, ComponentMetadata, RepositoryFile, RepositoryRef
from .sources.base import RepositorySource
from .streaming import CollectingSink, EventSink


class SessionState(str, Enum):
    INIT = "init"
    FETCHING_TREE = "fetching_tree"
    STREAMING_FILES = "streaming_files"
    BUILDING_RELATIONSHIPS = "building_relationships"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


_TRANSITIONS = {
    SessionState.INIT: {SessionState.FETCHING_TREE, SessionState.FAILED},
    SessionState.FETCHING_TREE: {SessionState.STREAMING_FILES, SessionState.FAILED},
    SessionState.STREAMING_FILES: {SessionState.BUILDING_RELATIONSHIPS},
    SessionState.BUILDING_RELATIONSHIPS: {SessionState.COMPLETE},
    SessionState.COMPLETE: set(),
    SessionState.FAILED: set(),
    SessionState.CANCELLED: set(),
}


@dataclass
class FileDiagnostic:
    """Record of a candidate file that was skipped because of an error."""

    path: str
    reason: str


class AnalysisSession:
    """Runs the extraction pipeline for one repository and branch.

    Files are processed strictly in priority order; each file's fetch,
    extraction and event are finished before the next file starts. A session
    owns its working set and must not be shared between consumers.
    """

    def __init__(
        self,
        source: RepositorySource,
        repository: RepositoryRef,
        *,
        max_files: int = DEFAULT_MAX_FILES,
        include_content: bool = False,
        exclude_segments: tuple[str, ...] | list[str] = DEFAULT_EXCLUDED_SEGMENTS,
    ) -> None:
        self.source = source
        self.repository = repository
        self.max_files = max_files
        self.include_content = include_content
        self.exclude_segments = tuple(exclude_segments)
        self.state = SessionState.INIT
        self.components: List[ComponentMetadata] = []
        self.all_files: List[RepositoryFile] = []
        self.diagnostics: List[FileDiagnostic] = []
        self.logger = get_logger("session")

    @property
    def result(self) -> Optional[AnalysisResult]:
        """The linked result, available only once the session completed."""
        if self.state is not SessionState.COMPLETE:
            return None
        return AnalysisResult(
            repository=self.repository,
            components=list(self.components),
            all_files=list(self.all_files),
        )

    async def run(self, sink: EventSink) -> None:
        """Drive the session to a terminal state, emitting events into ``sink``."""
        if self.state is not SessionState.INIT:
            raise RuntimeError(f"Session already started (state={self.state.value})")
        try:
            await self._run(sink)
        except StreamClosedError:
            self.logger.info(
                "Consumer disconnected from %s/%s; stopping after %d components",
                self.repository.owner,
                self.repository.name,
                len(self.components),
            )
            self.state = SessionState.CANCELLED
        except asyncio.CancelledError:
            self.state = SessionState.CANCELLED
            raise

    async def _run(self, sink: EventSink) -> None:
        owner, name, branch = (
            self.repository.owner,
            self.repository.name,
            self.repository.branch,
        )
        await sink.send(status_event("Fetching repository structure..."))

        self._transition(SessionState.FETCHING_TREE)
        try:
            tree = await self.source.fetch_tree(owner, name, branch)
        except UpstreamFetchError as exc:
            self.logger.error("Failed to fetch tree for %s/%s@%s: %s", owner, name, branch, exc)
            await self._fail(sink, str(exc))
            return
        except Exception as exc:
            self.logger.exception("Unexpected failure fetching tree for %s/%s@%s", owner, name, branch)
            reason = str(exc) or type(exc).__name__
            await self._fail(sink, f"Failed to fetch repository structure: {reason}")
            return

        self.all_files = filter_tree(tree, self.exclude_segments)
        await sink.send(files_event(self.all_files, self.repository))

        candidates = select_candidates(tree, self.exclude_segments)
        self.logger.info("Found %d candidate files in %s/%s", len(candidates), owner, name)
        await sink.send(status_event(f"Found {len(candidates)} files to analyze..."))

        self._transition(SessionState.STREAMING_FILES)
        selected = cap_candidates(candidates, self.max_files)
        total = len(selected)
        for position, item in enumerate(selected, start=1):
            await sink.send(progress_event(position, total, item.path))
            component = await self._analyze_candidate(item)
            if component is None:
                continue
            self.components.append(component)
            await sink.send(component_event(component))

        self._transition(SessionState.BUILDING_RELATIONSHIPS)
        build_relationships(self.components)

        self._transition(SessionState.COMPLETE)
        self.logger.info(
            "Analysis complete for %s/%s: %d components, %d skipped",
            owner,
            name,
            len(self.components),
            len(self.diagnostics),
        )
        await sink.send(
            complete_event(self.components, len(self.all_files), len(self.components))
        )

    async def _analyze_candidate(self, item: RepositoryFile) -> Optional[ComponentMetadata]:
        repo = self.repository
        try:
            content = await self.source.fetch_file_content(
                repo.owner, repo.name, item.path, repo.branch
            )
            component = analyze_file(item.path, content, include_content=self.include_content)
        except PerFileExtractionError as exc:
            self._record_failure(item.path, str(exc))
            return None
        except StreamClosedError:
            raise
        except Exception as exc:
            self._record_failure(item.path, f"{type(exc).__name__}: {exc}")
            return None

        if component is None:
            self.logger.debug("No component found in %s", item.path)
            return None
        self.logger.info(
            "Analyzed component: %s (%s)", component.name, component.type.value
        )
        return component

    async def _fail(self, sink: EventSink, message: str) -> None:
        self._transition(SessionState.FAILED)
        await sink.send(error_event(message))

    def _record_failure(self, path: str, reason: str) -> None:
        self.logger.warning("Failed to analyze file %s: %s", path, reason)
        self.diagnostics.append(FileDiagnostic(path=path, reason=reason))

    def _transition(self, target: SessionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Invalid session transition {self.state.value} -> {target.value}"
            )
        self.state = target


async def collect_events(session: AnalysisSession) -> List[SessionEvent]:
    """Run a session to completion and return every event it emitted."""
    sink = CollectingSink()
    await session.run(sink)
    return sink.events


__all__ = [
    "AnalysisSession",
    "FileDiagnostic",
    "SessionState",
    "collect_events",
]
