"""Component graph extraction for React and Next.js repositories."""

from .analyzers import analyze_file, build_relationships
from .models import (
    AnalysisResult,
    ComponentMetadata,
    ComponentType,
    PropDescriptor,
    RepositoryFile,
    RepositoryRef,
)
from .session import AnalysisSession, SessionState

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "AnalysisSession",
    "ComponentMetadata",
    "ComponentType",
    "PropDescriptor",
    "RepositoryFile",
    "RepositoryRef",
    "SessionState",
    "analyze_file",
    "build_relationships",
]
