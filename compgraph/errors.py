"""Error types raised across the analysis pipeline."""

from __future__ import annotations


class CompGraphError(RuntimeError):
    """Base class for compgraph failures."""


class ValidationError(CompGraphError):
    """Raised when an analysis request is missing or malformed input."""


class UpstreamFetchError(CompGraphError):
    """Raised when the repository file tree cannot be retrieved."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class PerFileExtractionError(CompGraphError):
    """Raised when a single candidate file cannot be fetched or analysed."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class FileFetchError(PerFileExtractionError):
    """Raised when the content of a single file cannot be retrieved."""

    def __init__(self, path: str, message: str, *, status: int | None = None) -> None:
        super().__init__(path, message)
        self.status = status


class StreamClosedError(CompGraphError):
    """Raised on a write attempt after the consumer stopped reading."""


__all__ = [
    "CompGraphError",
    "FileFetchError",
    "PerFileExtractionError",
    "StreamClosedError",
    "UpstreamFetchError",
    "ValidationError",
]
