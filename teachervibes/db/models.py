"""
SQLAlchemy models for TeacherVibes.

One table per gateway collection plus the identity tables. Vote and
favorite totals are always counted from their relation tables; artifacts
carry no denormalized counter column.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class UserModel(Base):
    """SQLAlchemy model for registered teachers."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(320), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary (never includes the password hash)."""
        return {
            "id": self.id,
            "email": self.email,
            "created_at": _iso(self.created_at),
        }


class SessionModel(Base):
    """SQLAlchemy model for sign-in sessions."""

    __tablename__ = "sessions"

    token = Column(String(128), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)

    user = relationship("UserModel")


class ArtifactModel(Base):
    """SQLAlchemy model for submitted artifacts."""

    __tablename__ = "artifacts"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(512), nullable=False)
    artifact_url = Column(String(2000), nullable=False)
    description = Column(Text, nullable=True)
    first_prompt = Column(Text, nullable=True)
    screenshot_url = Column(String(2000), nullable=True)
    user_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)

    subjects = relationship("ArtifactSubjectModel", lazy="selectin")
    key_stages = relationship("ArtifactKeyStageModel", lazy="selectin")

    __table_args__ = (Index("ix_artifacts_created_at", "created_at"),)

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "artifact_url": self.artifact_url,
            "description": self.description,
            "first_prompt": self.first_prompt,
            "screenshot_url": self.screenshot_url,
            "user_id": self.user_id,
            "created_at": _iso(self.created_at),
        }


class ArtifactSubjectModel(Base):
    """Subject tag row: (artifact, subject)."""

    __tablename__ = "artifact_subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artifact_id = Column(
        String(36), ForeignKey("artifacts.id"), nullable=False, index=True
    )
    subject = Column(String(64), nullable=False)

    __table_args__ = (
        UniqueConstraint("artifact_id", "subject", name="uq_artifact_subject"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "artifact_id": self.artifact_id, "subject": self.subject}


class ArtifactKeyStageModel(Base):
    """Key stage tag row: (artifact, key stage)."""

    __tablename__ = "artifact_key_stages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artifact_id = Column(
        String(36), ForeignKey("artifacts.id"), nullable=False, index=True
    )
    key_stage = Column(String(8), nullable=False)

    __table_args__ = (
        UniqueConstraint("artifact_id", "key_stage", name="uq_artifact_key_stage"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "artifact_id": self.artifact_id,
            "key_stage": self.key_stage,
        }


class VoteModel(Base):
    """One vote per (artifact, user)."""

    __tablename__ = "votes"

    id = Column(String(36), primary_key=True, default=_new_id)
    artifact_id = Column(
        String(36), ForeignKey("artifacts.id"), nullable=False, index=True
    )
    user_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)

    __table_args__ = (
        UniqueConstraint("artifact_id", "user_id", name="uq_vote_artifact_user"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "artifact_id": self.artifact_id,
            "user_id": self.user_id,
            "created_at": _iso(self.created_at),
        }


class FavoriteModel(Base):
    """One favorite per (artifact, user), independent of votes."""

    __tablename__ = "favorites"

    id = Column(String(36), primary_key=True, default=_new_id)
    artifact_id = Column(
        String(36), ForeignKey("artifacts.id"), nullable=False, index=True
    )
    user_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)

    __table_args__ = (
        UniqueConstraint("artifact_id", "user_id", name="uq_favorite_artifact_user"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "artifact_id": self.artifact_id,
            "user_id": self.user_id,
            "created_at": _iso(self.created_at),
        }
