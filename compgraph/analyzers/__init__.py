"""Classification, extraction and linking of repository components."""

from __future__ import annotations

from typing import Optional

from ..models import ComponentMetadata
from .classifier import classify, is_component_file
from .extractor import (
    extract_dependencies,
    extract_description,
    extract_exports,
    extract_name,
    extract_props,
    file_stem,
)
from .filters import cap_candidates, filter_tree, priority_rank, select_candidates
from .relationships import build_relationships


def analyze_file(
    path: str, content: str, *, include_content: bool = False
) -> Optional[ComponentMetadata]:
    """Classify and extract one file, returning None when it is not a component."""
    if not is_component_file(path, content):
        return None

    component_type = classify(path, content)
    return ComponentMetadata(
        name=extract_name(content, file_stem(path), component_type),
        description=extract_description(content),
        type=component_type,
        file=path,
        props=extract_props(content),
        uses=extract_dependencies(content),
        exports=extract_exports(content),
        content=content if include_content else None,
    )


__all__ = [
    "analyze_file",
    "build_relationships",
    "cap_candidates",
    "classify",
    "filter_tree",
    "is_component_file",
    "priority_rank",
    "select_candidates",
]
