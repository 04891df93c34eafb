"""Pattern-based extraction of component metadata from raw source text."""

from __future__ import annotations

import re
from typing import List, Optional

from ..models import ComponentType, PropDescriptor

_SOURCE_SUFFIX = re.compile(r"\.(?:tsx|jsx|ts|js)$")

_DEFAULT_EXPORT_NAME = re.compile(r"export\s+default\s+(?:function\s+)?([A-Z][a-zA-Z0-9]*)")
_HOOK_DECLARATION = re.compile(
    r"(?:export\s+)?(?:default\s+)?(?:function\s+|const\s+)(use[A-Z][a-zA-Z0-9]*)"
)
_FUNCTION_NAME = re.compile(r"(?:export\s+)?function\s+([A-Z][a-zA-Z0-9]*)")
_CONST_NAME = re.compile(r"(?:export\s+)?const\s+([A-Z][a-zA-Z0-9]*)\s*=")

_DOC_COMMENT = re.compile(r"/\*\*\s*\n\s*\*\s*(.+?)\s*\n")
_LINE_COMMENT = re.compile(r"//\s*(.+?)\n\s*(?:export\s+)?(?:function|const|class)")

_PROPS_INTERFACE = re.compile(r"interface\s+\w*Props\s*\{([^}]+)\}")
_PROP_FIELD = re.compile(r"(\w+)(\?)?:\s*([^;\n]+);?")

_IMPORT = re.compile(
    r"import\s+(?:\{[^}]+\}|\w+|[^'\";]+?)\s+from\s+['\"]([^'\"]+)['\"]"
)
_IMPORT_CLAUSE = re.compile(r"import\s+(?:\{([^}]+)\}|(\w+))")
_LOCAL_PREFIXES = ("./", "../", "@/")

_NAMED_EXPORT = re.compile(r"export\s+(?:function\s+(\w+)|const\s+(\w+)|\{([^}]+)\})")
_DEFAULT_EXPORT_ANY = re.compile(r"export\s+default\s+(?:function\s+)?(\w+)")


def file_stem(path: str) -> str:
    """Return the file name without directory or source extension."""
    return _SOURCE_SUFFIX.sub("", path.rsplit("/", 1)[-1])


def extract_name(
    content: str, file_name: str, component_type: ComponentType | None = None
) -> str:
    """Return the component name, falling back to the capitalised file name.

    Hooks keep their declared ``use*`` identifier instead of being forced
    through the capitalised fallback.
    """
    match = _DEFAULT_EXPORT_NAME.search(content)
    if match:
        return match.group(1)
    if component_type is ComponentType.HOOK:
        match = _HOOK_DECLARATION.search(content)
        if match:
            return match.group(1)
    match = _FUNCTION_NAME.search(content)
    if match:
        return match.group(1)
    match = _CONST_NAME.search(content)
    if match:
        return match.group(1)
    return file_name[:1].upper() + file_name[1:]


def extract_description(content: str) -> Optional[str]:
    match = _DOC_COMMENT.search(content)
    if match:
        return match.group(1)
    match = _LINE_COMMENT.search(content)
    if match:
        return match.group(1)
    return None


def extract_props(content: str) -> List[PropDescriptor]:
    """Read fields from the first ``*Props`` interface only."""
    match = _PROPS_INTERFACE.search(content)
    if not match:
        return []
    props: List[PropDescriptor] = []
    for field_match in _PROP_FIELD.finditer(match.group(1)):
        props.append(
            PropDescriptor(
                name=field_match.group(1),
                type=field_match.group(3).strip(),
                required=not field_match.group(2),
            )
        )
    return props


def extract_dependencies(content: str) -> List[str]:
    """Return capitalised identifiers imported from project-local modules."""
    dependencies: List[str] = []
    for match in _IMPORT.finditer(content):
        source = match.group(1)
        if not source.startswith(_LOCAL_PREFIXES):
            continue
        clause = _IMPORT_CLAUSE.match(match.group(0))
        if not clause:
            continue
        if clause.group(1):
            names = [_imported_name(item) for item in clause.group(1).split(",")]
        else:
            names = [clause.group(2)]
        dependencies.extend(name for name in names if name and name[0].isupper())
    return dependencies


def _imported_name(specifier: str) -> str:
    # `Foo as Bar` links to the declared name `Foo`.
    return specifier.strip().split(" as ", 1)[0].strip()


def extract_exports(content: str) -> List[str]:
    exports: List[str] = []
    for match in _NAMED_EXPORT.finditer(content):
        if match.group(1):
            exports.append(match.group(1))
        if match.group(2):
            exports.append(match.group(2))
        if match.group(3):
            exports.extend(
                name.strip() for name in match.group(3).split(",") if name.strip()
            )
    match = _DEFAULT_EXPORT_ANY.search(content)
    if match:
        exports.append(match.group(1))
    return exports


__all__ = [
    "extract_dependencies",
    "extract_description",
    "extract_exports",
    "extract_name",
    "extract_props",
    "file_stem",
]
