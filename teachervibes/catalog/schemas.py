"""
Pydantic schemas for catalog records and requests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import Collection, KeyStage, SortBy, Subject


class UserIdentity(BaseModel):
    """A signed-in user as reported by the identity provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str


class Artifact(BaseModel):
    """An artifact row together with its facet tags.

    Invariants:
    - Every artifact is submitted with at least one subject and one key stage.
      Storage does not enforce this, so readers must tolerate empty lists.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    artifact_url: str
    description: Optional[str] = None
    first_prompt: Optional[str] = None
    screenshot_url: Optional[str] = None
    user_id: str
    created_at: datetime
    subjects: List[Subject] = Field(default_factory=list)
    key_stages: List[KeyStage] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Artifact":
        """Build from an ``artifacts`` row with expanded tag collections."""
        return cls(
            id=row["id"],
            title=row["title"],
            artifact_url=row["artifact_url"],
            description=row.get("description"),
            first_prompt=row.get("first_prompt"),
            screenshot_url=row.get("screenshot_url"),
            user_id=row["user_id"],
            created_at=row["created_at"],
            subjects=[
                tag["subject"]
                for tag in row.get(Collection.ARTIFACT_SUBJECTS.value) or []
            ],
            key_stages=[
                tag["key_stage"]
                for tag in row.get(Collection.ARTIFACT_KEY_STAGES.value) or []
            ],
        )


class EnrichedArtifact(Artifact):
    """An artifact plus counts and viewer-relative flags, computed per fetch."""

    vote_count: int = 0
    favorite_count: int = 0
    user_has_voted: bool = False
    user_has_favorited: bool = False
    is_owner: bool = False


class CatalogHighlights(BaseModel):
    """Landing-page summary: catalog totals and the best-voted recent artifacts."""

    artifact_count: int
    contributor_count: int
    top_artifacts: List[EnrichedArtifact]


class ArtifactInput(BaseModel):
    """Form fields for submitting or editing an artifact."""

    model_config = ConfigDict(extra="forbid")

    title: str = ""
    artifact_url: str = ""
    description: Optional[str] = None
    first_prompt: Optional[str] = None
    subjects: List[Subject] = Field(default_factory=list)
    key_stages: List[KeyStage] = Field(default_factory=list)


class ImageUpload(BaseModel):
    """A screenshot chosen by the user."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        """Original file extension, without the dot ("" when absent)."""
        if "." not in self.filename:
            return ""
        return self.filename.rsplit(".", 1)[-1].lower()


class FilterSpec(BaseModel):
    """Immutable description of what the browse screen should show."""

    model_config = ConfigDict(frozen=True)

    favorites_only: bool = False
    search_text: str = ""
    subjects: FrozenSet[Subject] = frozenset()
    key_stages: FrozenSet[KeyStage] = frozenset()
    sort_by: SortBy = SortBy.NEWEST

    @property
    def is_default(self) -> bool:
        return self == FilterSpec()
