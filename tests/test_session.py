"""Tests for the analysis session state machine and its event sequence."""

from __future__ import annotations

import asyncio
import http.client
from contextlib import aclosing
from typing import Dict, List

import pytest

from compgraph.errors import StreamClosedError, UpstreamFetchError
from compgraph.events import EventType, SessionEvent
from compgraph.models import RepositoryRef
from compgraph.session import AnalysisSession, SessionState, collect_events
from compgraph.streaming import stream_session
from tests._fixtures.fake_source import FakeSource

DASHBOARD = """
import Card from '../../components/Card';

export default function Dashboard() {
  return (<Card title="Welcome" />);
}
"""

CARD = """
import React from 'react';

interface CardProps {
  title: string;
  subtitle?: string;
}

export default function Card({ title }: CardProps) {
  return (<div>{title}</div>);
}
"""

PROJECT: Dict[str, str] = {
    "app/dashboard/page.tsx": DASHBOARD,
    "components/Card.tsx": CARD,
    "src/values.ts": "export const x = 1;\n",
    "README.md": "# demo\n",
}

REPOSITORY = RepositoryRef(owner="acme", name="web", branch="main")


def _session(source: FakeSource, **kwargs) -> AnalysisSession:
    return AnalysisSession(source, REPOSITORY, **kwargs)


def _types(events: List[SessionEvent]) -> List[str]:
    return [event.type.value for event in events]


def test_event_sequence_for_small_project() -> None:
    source = FakeSource(PROJECT, directories=["app", "components"])
    session = _session(source)

    events = asyncio.run(collect_events(session))

    assert _types(events) == [
        "status",
        "files",
        "status",
        "progress",
        "component",
        "progress",
        "component",
        "progress",
        "complete",
    ]
    assert events[0].payload == {"message": "Fetching repository structure..."}
    assert events[2].payload == {"message": "Found 3 files to analyze..."}
    assert [event.payload["file"] for event in events if event.type is EventType.PROGRESS] == [
        "app/dashboard/page.tsx",
        "components/Card.tsx",
        "src/values.ts",
    ]
    assert events[3].payload == {"current": 1, "total": 3, "file": "app/dashboard/page.tsx"}
    assert session.state is SessionState.COMPLETE
    assert source.tree_calls == [("acme", "web", "main")]


def test_files_event_carries_filtered_listing() -> None:
    files = dict(PROJECT)
    files["node_modules/react/index.js"] = "module.exports = {};"
    source = FakeSource(files, directories=["app"])

    events = asyncio.run(collect_events(_session(source)))
    files_payload = events[1].payload

    paths = [entry["path"] for entry in files_payload["allFiles"]]
    assert "node_modules/react/index.js" not in paths
    assert paths[0] == "app"
    assert files_payload["allFiles"][0]["type"] == "tree"
    assert files_payload["repository"] == {"owner": "acme", "name": "web", "branch": "main"}


def test_used_by_is_only_populated_in_complete_event() -> None:
    source = FakeSource(PROJECT)

    events = asyncio.run(collect_events(_session(source)))

    streamed = {
        event.payload["component"]["name"]: event.payload["component"]
        for event in events
        if event.type is EventType.COMPONENT
    }
    assert streamed["Card"]["usedBy"] == []
    assert streamed["Dashboard"]["uses"] == ["Card"]

    complete = events[-1].payload
    linked = {component["name"]: component for component in complete["components"]}
    assert linked["Card"]["usedBy"] == ["Dashboard"]
    assert linked["Card"]["props"] == [
        {"name": "title", "type": "string", "required": True},
        {"name": "subtitle", "type": "string", "required": False},
    ]
    assert complete["totalFiles"] == 4
    assert complete["analyzedFiles"] == 2


def test_result_is_available_once_complete() -> None:
    session = _session(FakeSource(PROJECT))
    assert session.result is None

    asyncio.run(collect_events(session))

    result = session.result
    assert result is not None
    assert result.repository == REPOSITORY
    assert [component.name for component in result.components] == ["Dashboard", "Card"]
    assert result.total_files == 4
    assert result.analyzed_files == 2


def test_tree_failure_emits_single_error() -> None:
    error = UpstreamFetchError("Repository not found or branch does not exist", status=404)
    source = FakeSource(PROJECT, tree_error=error)
    session = _session(source)

    events = asyncio.run(collect_events(session))

    assert _types(events) == ["status", "error"]
    assert events[-1].payload == {"error": "Repository not found or branch does not exist"}
    assert session.state is SessionState.FAILED
    assert session.result is None
    assert source.fetched == []


def test_file_failure_is_isolated() -> None:
    source = FakeSource(PROJECT, failing=["components/Card.tsx"])
    session = _session(source)

    events = asyncio.run(collect_events(session))

    assert events[-1].type is EventType.COMPLETE
    assert not any(event.type is EventType.ERROR for event in events)
    assert [component.name for component in session.components] == ["Dashboard"]
    assert source.fetched == [
        "app/dashboard/page.tsx",
        "components/Card.tsx",
        "src/values.ts",
    ]
    assert len(session.diagnostics) == 1
    assert session.diagnostics[0].path == "components/Card.tsx"
    assert "500" in session.diagnostics[0].reason
    assert session.components[0].uses == ["Card"]


def test_max_files_caps_extraction() -> None:
    source = FakeSource(PROJECT)

    events = asyncio.run(collect_events(_session(source, max_files=2)))

    progress = [event.payload for event in events if event.type is EventType.PROGRESS]
    assert [item["total"] for item in progress] == [2, 2]
    assert events[2].payload == {"message": "Found 3 files to analyze..."}
    assert source.fetched == ["app/dashboard/page.tsx", "components/Card.tsx"]


def test_include_content_attaches_source_text() -> None:
    source = FakeSource(PROJECT)

    events = asyncio.run(collect_events(_session(source, include_content=True)))

    component = next(event for event in events if event.type is EventType.COMPONENT)
    assert component.payload["component"]["content"] == source.files["app/dashboard/page.tsx"]


def test_session_cannot_run_twice() -> None:
    session = _session(FakeSource(PROJECT))
    asyncio.run(collect_events(session))

    with pytest.raises(RuntimeError):
        asyncio.run(collect_events(session))


class _DisconnectingSink:
    """Accepts events until the first component, then reports the reader gone."""

    def __init__(self) -> None:
        self.events: List[SessionEvent] = []

    async def send(self, event: SessionEvent) -> None:
        if self.events and self.events[-1].type is EventType.COMPONENT:
            raise StreamClosedError("reader gone")
        self.events.append(event)


def test_disconnected_sink_cancels_session() -> None:
    source = FakeSource(PROJECT)
    session = _session(source)
    sink = _DisconnectingSink()

    asyncio.run(session.run(sink))

    assert session.state is SessionState.CANCELLED
    assert session.result is None
    assert source.fetched == ["app/dashboard/page.tsx"]
    assert sink.events[-1].type is EventType.COMPONENT


def test_closing_stream_stops_remaining_work() -> None:
    source = FakeSource(PROJECT)
    session = _session(source)

    async def consume() -> List[SessionEvent]:
        received: List[SessionEvent] = []
        async with aclosing(stream_session(session, maxsize=1)) as events:
            async for event in events:
                received.append(event)
                if event.type is EventType.COMPONENT:
                    break
        return received

    received = asyncio.run(consume())

    assert received[-1].type is EventType.COMPONENT
    assert session.state is SessionState.CANCELLED
    assert "src/values.ts" not in source.fetched


def test_concurrent_sessions_are_independent() -> None:
    first_source = FakeSource(PROJECT)
    second_source = FakeSource(
        {"components/Button.tsx": "export default function Button() { return (<button/>); }"}
    )
    first = _session(first_source)
    second = AnalysisSession(second_source, RepositoryRef(owner="acme", name="ui"))

    async def run_both():
        return await asyncio.gather(collect_events(first), collect_events(second))

    first_events, second_events = asyncio.run(run_both())

    assert [c["name"] for c in first_events[-1].payload["components"]] == ["Dashboard", "Card"]
    assert [c["name"] for c in second_events[-1].payload["components"]] == ["Button"]
    assert first.state is SessionState.COMPLETE
    assert second.state is SessionState.COMPLETE


def test_unexpected_tree_failure_emits_single_error() -> None:
    source = FakeSource(PROJECT, tree_error=TimeoutError("timed out"))
    session = _session(source)

    events = asyncio.run(collect_events(session))

    assert _types(events) == ["status", "error"]
    assert events[-1].payload == {"error": "Failed to fetch repository structure: timed out"}
    assert session.state is SessionState.FAILED


def test_streamed_tree_failure_ends_with_error_event() -> None:
    session = _session(FakeSource(PROJECT, tree_error=ConnectionResetError()))

    async def drain() -> List[SessionEvent]:
        return [event async for event in stream_session(session)]

    events = asyncio.run(drain())

    assert events[-1].type is EventType.ERROR
    assert events[-1].payload["error"].endswith("ConnectionResetError")
    assert session.state is SessionState.FAILED


def test_unexpected_file_failure_is_isolated() -> None:
    files = {
        "components/A.tsx": "export default function A() { return (<a/>); }",
        "components/B.tsx": "export default function B() { return (<b/>); }",
    }
    source = FakeSource(
        files, errors={"components/A.tsx": http.client.IncompleteRead(b"partial")}
    )
    session = _session(source)

    events = asyncio.run(collect_events(session))

    assert events[-1].type is EventType.COMPLETE
    assert [c["name"] for c in events[-1].payload["components"]] == ["B"]
    assert source.fetched == ["components/A.tsx", "components/B.tsx"]
    assert session.diagnostics[0].path == "components/A.tsx"
    assert session.diagnostics[0].reason.startswith("IncompleteRead")
