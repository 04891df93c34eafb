"""Typed progress events emitted by an analysis session, and their wire form."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Sequence

from .models import ComponentMetadata, RepositoryFile, RepositoryRef


class EventType(str, Enum):
    STATUS = "status"
    FILES = "files"
    PROGRESS = "progress"
    COMPONENT = "component"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class SessionEvent:
    """One tagged record of the session's output sequence."""

    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.type in (EventType.COMPLETE, EventType.ERROR)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, **self.payload}


def status_event(message: str) -> SessionEvent:
    return SessionEvent(EventType.STATUS, {"message": message})


def files_event(
    all_files: Sequence[RepositoryFile], repository: RepositoryRef | None = None
) -> SessionEvent:
    payload: Dict[str, Any] = {"allFiles": [item.to_dict() for item in all_files]}
    if repository is not None:
        payload["repository"] = repository.to_dict()
    return SessionEvent(EventType.FILES, payload)


def progress_event(current: int, total: int, file: str) -> SessionEvent:
    return SessionEvent(
        EventType.PROGRESS, {"current": current, "total": total, "file": file}
    )


def component_event(component: ComponentMetadata) -> SessionEvent:
    return SessionEvent(EventType.COMPONENT, {"component": component.to_dict()})


def complete_event(
    components: Sequence[ComponentMetadata], total_files: int, analyzed_files: int
) -> SessionEvent:
    return SessionEvent(
        EventType.COMPLETE,
        {
            "components": [component.to_dict() for component in components],
            "totalFiles": total_files,
            "analyzedFiles": analyzed_files,
        },
    )


def error_event(message: str) -> SessionEvent:
    return SessionEvent(EventType.ERROR, {"error": message})


def encode_sse(event: SessionEvent) -> str:
    """Render an event as a single server-sent-events record."""
    return f"data: {json.dumps(event.to_dict())}\n\n"


__all__ = [
    "EventType",
    "SessionEvent",
    "complete_event",
    "component_event",
    "encode_sse",
    "error_event",
    "files_event",
    "progress_event",
    "status_event",
]
