"""Core data models shared across compgraph components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ComponentType(str, Enum):
    """Role a discovered component plays in the application."""

    PAGE = "page"
    LAYOUT = "layout"
    COMPONENT = "component"
    HOOK = "hook"
    UTILITY = "utility"
    CONTEXT = "context"


@dataclass(frozen=True)
class RepositoryFile:
    """Entry of a repository file listing as returned by the hosting API."""

    path: str
    kind: str
    url: str

    @property
    def is_blob(self) -> bool:
        return self.kind == "blob"

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "type": self.kind, "url": self.url}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RepositoryFile":
        return cls(
            path=str(payload["path"]),
            kind=str(payload.get("type") or payload.get("kind") or "blob"),
            url=str(payload.get("url") or ""),
        )


@dataclass(frozen=True)
class PropDescriptor:
    """A single field declared in a component's props interface."""

    name: str
    type: str
    required: bool
    description: Optional[str] = None
    default_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "required": self.required,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.default_value is not None:
            data["defaultValue"] = self.default_value
        return data

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PropDescriptor":
        return cls(
            name=str(payload["name"]),
            type=str(payload.get("type", "")),
            required=bool(payload.get("required", False)),
            description=payload.get("description"),
            default_value=payload.get("defaultValue"),
        )


@dataclass
class ComponentMetadata:
    """Structured facts extracted from one source file.

    ``uses`` is filled while the file is extracted. ``used_by`` stays empty
    until the relationship pass has seen the whole working set.
    """

    name: str
    type: ComponentType
    file: str
    description: Optional[str] = None
    props: List[PropDescriptor] = field(default_factory=list)
    uses: List[str] = field(default_factory=list)
    used_by: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    content: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.description is not None:
            data["description"] = self.description
        data.update(
            {
                "type": self.type.value,
                "file": self.file,
                "props": [prop.to_dict() for prop in self.props],
                "uses": list(self.uses),
                "usedBy": list(self.used_by),
                "exports": list(self.exports),
            }
        )
        if self.content is not None:
            data["content"] = self.content
        return data

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ComponentMetadata":
        return cls(
            name=str(payload["name"]),
            type=ComponentType(payload["type"]),
            file=str(payload["file"]),
            description=payload.get("description"),
            props=[PropDescriptor.from_dict(item) for item in payload.get("props") or []],
            uses=[str(item) for item in payload.get("uses") or []],
            used_by=[str(item) for item in payload.get("usedBy") or []],
            exports=[str(item) for item in payload.get("exports") or []],
            content=payload.get("content"),
        )


@dataclass
class RepositoryRef:
    """Owner/name/branch triple identifying an analysed repository."""

    owner: str
    name: str
    branch: str = "main"

    def to_dict(self) -> Dict[str, str]:
        return {"owner": self.owner, "name": self.name, "branch": self.branch}


@dataclass
class AnalysisResult:
    """Fully linked outcome of a completed session."""

    repository: RepositoryRef
    components: List[ComponentMetadata]
    all_files: List[RepositoryFile]

    @property
    def total_files(self) -> int:
        return len(self.all_files)

    @property
    def analyzed_files(self) -> int:
        return len(self.components)
