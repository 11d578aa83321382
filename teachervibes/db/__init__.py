"""
Database package for TeacherVibes.
"""

from .base import Base, get_engine, get_session_local, init_database, run_migrations
from .models import (
    ArtifactKeyStageModel,
    ArtifactModel,
    ArtifactSubjectModel,
    FavoriteModel,
    SessionModel,
    UserModel,
    VoteModel,
)

__all__ = [
    "Base",
    "get_engine",
    "get_session_local",
    "init_database",
    "run_migrations",
    "ArtifactModel",
    "ArtifactSubjectModel",
    "ArtifactKeyStageModel",
    "VoteModel",
    "FavoriteModel",
    "UserModel",
    "SessionModel",
]
