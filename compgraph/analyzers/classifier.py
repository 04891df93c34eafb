"""Heuristic eligibility and role classification for source files.

Everything here works on raw text plus the repository path; no parsing is
attempted. Each predicate is exposed so the decision tables can be tested
one signal at a time.
"""

from __future__ import annotations

import re

from ..models import ComponentType

_EXT = r"\.(?:tsx|jsx|ts|js)$"

_FRAMEWORK_CONFIG = re.compile(r"(?:next\.config|tailwind\.config|postcss\.config)\.")
_TEST_FILE = re.compile(r"\.(?:test|spec)" + _EXT)
_API_SEGMENT = re.compile(r"(?:^|/)api/")
_MARKUP_EXT = re.compile(r"\.(?:tsx|jsx)$")
_DECLARATION_EXPORT = re.compile(r"export.*(?:Component|Provider)")

_UI_IMPORT = re.compile(r"import.*React|from\s+['\"]react['\"]")
_MARKUP_RETURN = re.compile(r"return\s*\([\s\S]*<")
_DEFAULT_EXPORT = re.compile(r"export\s+default")
_CAPITALIZED_DECLARATION = re.compile(r"function\s+[A-Z]|const\s+[A-Z].*=|class\s+[A-Z]")
_HOOK_EXPORT = re.compile(r"export\s+(?:function\s+use[A-Z]|const\s+use[A-Z])")
_ROUTER_PATH = re.compile(r"(?:^|/)(?:pages|app)/.*" + _EXT)
_UTILITY_DIR = re.compile(r"(?:^|/)(?:utils|lib|helpers|config|constants)/")

_ROUTER_PAGE = re.compile(r"(?:^|/)app/(?:.*/)?page" + _EXT)
_LEGACY_PAGE = re.compile(r"(?:^|/)pages/.*" + _EXT)
_ROUTER_LAYOUT = re.compile(r"(?:^|/)app/(?:.*/)?layout" + _EXT)
_DEFAULT_EXPORTED_NAME = re.compile(r"export\s+default\s+(?:function\s+|class\s+)?([A-Z]\w*)")
_DECLARED_NAME = re.compile(r"(?:function|class)\s+([A-Z]\w*)")
_DECLARED_CONST_NAME = re.compile(r"const\s+([A-Z]\w*)\s*=")
_LAYOUT_NAME = re.compile(r"Layout(?:Component)?$")
_ROUTER_SPECIAL = re.compile(
    r"(?:^|/)app/(?:.*/)?(?:loading|error|not-found|global-error)" + _EXT
)
_ROUTE_GROUP_PAGE = re.compile(r"(?:^|/)app/\([^)]+\)/(?:.*/)?page" + _EXT)
_DYNAMIC_PAGE = re.compile(r"(?:^|/)app/.*\[.*\].*/page" + _EXT)
_HOOK_FILENAME = re.compile(r"(?:^|/)use[A-Z][a-zA-Z]*" + _EXT)
_CONTEXT_CREATION = re.compile(r"\bcreateContext\s*[<(]")
_UTILITY_SUFFIX = re.compile(r"\.(?:config|constants|utils|helpers)" + _EXT)


def _in_directory(path: str, *names: str) -> bool:
    wrapped = f"/{path}"
    return any(f"/{name}/" in wrapped for name in names)


def _is_layout_component(content: str) -> bool:
    """True when the primary component of the file is named `*Layout`."""
    for pattern in (_DEFAULT_EXPORTED_NAME, _DECLARED_NAME, _DECLARED_CONST_NAME):
        match = pattern.search(content)
        if match:
            return bool(_LAYOUT_NAME.search(match.group(1)))
    return False


# ---------------------------------------------------------------------------
# Path and content signals


def is_framework_config(path: str) -> bool:
    return bool(_FRAMEWORK_CONFIG.search(path))


def is_test_file(path: str) -> bool:
    return bool(_TEST_FILE.search(path))


def is_api_route(path: str) -> bool:
    """API handlers are skipped unless they are markup files."""
    return bool(_API_SEGMENT.search(path)) and not _MARKUP_EXT.search(path)


def is_bare_declaration_file(path: str, content: str) -> bool:
    """Type declaration files count only when they export components or providers."""
    return path.endswith(".d.ts") and not _DECLARATION_EXPORT.search(content)


def imports_ui_framework(content: str) -> bool:
    return bool(_UI_IMPORT.search(content))


def returns_markup(content: str) -> bool:
    return bool(_MARKUP_RETURN.search(content))


def is_router_path(path: str) -> bool:
    return bool(_ROUTER_PATH.search(path))


def is_layout_path(path: str) -> bool:
    return "layout." in path


def is_hook(content: str) -> bool:
    return bool(_HOOK_EXPORT.search(content))


def is_utility_path(path: str) -> bool:
    return bool(_UTILITY_DIR.search(path))


def has_default_export(content: str) -> bool:
    return bool(_DEFAULT_EXPORT.search(content))


def has_capitalized_declaration(content: str) -> bool:
    return bool(_CAPITALIZED_DECLARATION.search(content))


# ---------------------------------------------------------------------------
# Decisions


def is_component_file(path: str, content: str) -> bool:
    """Return True when the file should produce a component record."""
    if is_framework_config(path):
        return True
    if is_test_file(path) or is_api_route(path) or is_bare_declaration_file(path, content):
        return False

    hook = is_hook(content)
    utility = is_utility_path(path)
    looks_like_ui = (
        imports_ui_framework(content)
        or returns_markup(content)
        or is_router_path(path)
        or is_layout_path(path)
        or hook
        or utility
    )
    declares_symbol = (
        has_default_export(content)
        or has_capitalized_declaration(content)
        or hook
        or utility
    )
    return looks_like_ui and declares_symbol


def classify(path: str, content: str) -> ComponentType:
    """Assign a component type using the first matching rule."""
    if _ROUTER_PAGE.search(path):
        return ComponentType.PAGE
    if (
        _LEGACY_PAGE.search(path)
        and "_app" not in path
        and "_document" not in path
        and not _in_directory(path, "api")
    ):
        return ComponentType.PAGE
    if _ROUTER_LAYOUT.search(path):
        return ComponentType.LAYOUT
    if (
        is_layout_path(path)
        or _in_directory(path, "layouts")
        or "_app." in path
        or _is_layout_component(content)
    ):
        return ComponentType.LAYOUT
    if _ROUTER_SPECIAL.search(path):
        return ComponentType.PAGE
    # Group and dynamic-segment pages are normally caught by the router page
    # rule; they stay listed so the table reads the same as the routing docs.
    if _ROUTE_GROUP_PAGE.search(path) or _DYNAMIC_PAGE.search(path):
        return ComponentType.PAGE
    if _in_directory(path, "hooks") or is_hook(content) or _HOOK_FILENAME.search(path):
        return ComponentType.HOOK
    if (
        _in_directory(path, "context")
        or "Context" in path
        or "Provider" in path
        or _CONTEXT_CREATION.search(content)
    ):
        return ComponentType.CONTEXT
    if (
        _in_directory(path, "utils", "lib", "helpers", "config", "constants")
        or _UTILITY_SUFFIX.search(path)
    ):
        return ComponentType.UTILITY
    return ComponentType.COMPONENT


__all__ = [
    "classify",
    "has_capitalized_declaration",
    "has_default_export",
    "imports_ui_framework",
    "is_api_route",
    "is_bare_declaration_file",
    "is_component_file",
    "is_framework_config",
    "is_hook",
    "is_layout_path",
    "is_router_path",
    "is_test_file",
    "is_utility_path",
    "returns_markup",
]
