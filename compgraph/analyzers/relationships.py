"""Second pass that links components into a bidirectional usage graph."""

from __future__ import annotations

from typing import Dict, Sequence

from ..models import ComponentMetadata


def index_by_name(components: Sequence[ComponentMetadata]) -> Dict[str, ComponentMetadata]:
    """Map each name to the first component record carrying it.

    Components are identified by name alone. When two files yield the same
    name, later records are unreachable through this index and every edge
    pointing at that name lands on the first one.
    """
    index: Dict[str, ComponentMetadata] = {}
    for component in components:
        index.setdefault(component.name, component)
    return index


def build_relationships(components: Sequence[ComponentMetadata]) -> None:
    """Populate ``used_by`` from every component's ``uses`` list, in place.

    Must run over the complete working set; running it again over the same
    set adds nothing.
    """
    index = index_by_name(components)
    for component in components:
        for used_name in component.uses:
            target = index.get(used_name)
            if target is None:
                continue
            if component.name not in target.used_by:
                target.used_by.append(component.name)


__all__ = ["build_relationships", "index_by_name"]
