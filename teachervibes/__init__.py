"""
TeacherVibes

A community library where teachers share, browse and vote on AI-generated
interactive teaching artifacts.
"""

import importlib.metadata

__version__ = importlib.metadata.version("teachervibes")

from .catalog import (
    Artifact,
    ArtifactInput,
    EnrichedArtifact,
    FilterSpec,
    KeyStage,
    SortBy,
    Subject,
    apply_filters,
)

__all__ = [
    "Artifact",
    "ArtifactInput",
    "EnrichedArtifact",
    "FilterSpec",
    "KeyStage",
    "SortBy",
    "Subject",
    "apply_filters",
]
