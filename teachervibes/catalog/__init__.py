"""
Artifact catalog: vocabularies, records, errors and the filter/sort engine.

The gateway-backed services live in their own modules
(``aggregator``, ``editor``, ``interactions``, ``view``).
"""

from .enums import Collection, KeyStage, SortBy, Subject
from .errors import (
    ArtifactNotFoundError,
    AuthRequiredError,
    CatalogError,
    CatalogLoadError,
    ConfirmationRequiredError,
    GatewayError,
    NotOwnerError,
    SagaError,
    ValidationError,
)
from .filters import apply_filters, matches_search, sort_artifacts
from .schemas import (
    Artifact,
    ArtifactInput,
    CatalogHighlights,
    EnrichedArtifact,
    FilterSpec,
    ImageUpload,
    UserIdentity,
)

__all__ = [
    # Enums
    "Collection",
    "KeyStage",
    "SortBy",
    "Subject",
    # Errors
    "ArtifactNotFoundError",
    "AuthRequiredError",
    "CatalogError",
    "CatalogLoadError",
    "ConfirmationRequiredError",
    "GatewayError",
    "NotOwnerError",
    "SagaError",
    "ValidationError",
    # Engine
    "apply_filters",
    "matches_search",
    "sort_artifacts",
    # Schemas
    "Artifact",
    "ArtifactInput",
    "CatalogHighlights",
    "EnrichedArtifact",
    "FilterSpec",
    "ImageUpload",
    "UserIdentity",
]
