"""Test configuration and fixtures."""

from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from teachervibes.config import Settings
from teachervibes.db.base import Base
from teachervibes.gateway import FileObjectStore, SqlGateway, SqlIdentityProvider


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """A fresh in-memory SQLite database per test."""
    from teachervibes.db import models  # noqa: F401

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def gateway(session_factory) -> SqlGateway:
    return SqlGateway(session_factory)


@pytest.fixture
def object_store(tmp_path: Path) -> FileObjectStore:
    return FileObjectStore(tmp_path, "artifact-screenshots", "http://test/storage")


@pytest.fixture
def identity(session_factory) -> SqlIdentityProvider:
    return SqlIdentityProvider(session_factory, session_ttl_days=7)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        storage_root=str(tmp_path),
        public_base_url="http://test/storage",
    )
