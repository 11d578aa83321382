"""
FastAPI dependency providers.

Tests swap storage by overriding ``get_session_factory`` and
``get_object_store``.
"""

from pathlib import Path
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import sessionmaker

from .catalog.errors import AuthRequiredError
from .catalog.schemas import UserIdentity
from .config import Settings, get_settings
from .db.base import get_session_local
from .gateway import FileObjectStore, Gateway, ObjectStore, SqlGateway, SqlIdentityProvider

security = HTTPBearer(auto_error=False)


def get_session_factory() -> sessionmaker:
    return get_session_local()


def get_gateway(session_factory: sessionmaker = Depends(get_session_factory)) -> Gateway:
    return SqlGateway(session_factory)


def get_object_store(settings: Settings = Depends(get_settings)) -> ObjectStore:
    return FileObjectStore(
        Path(settings.storage_root),
        settings.screenshot_bucket,
        settings.public_base_url,
    )


def get_identity_provider(
    session_factory: sessionmaker = Depends(get_session_factory),
    settings: Settings = Depends(get_settings),
) -> SqlIdentityProvider:
    return SqlIdentityProvider(session_factory, settings.session_ttl_days)


def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_viewer(
    token: Optional[str] = Depends(get_token),
    identity: SqlIdentityProvider = Depends(get_identity_provider),
) -> Optional[UserIdentity]:
    """The signed-in user, or None for anonymous browsing."""
    return await identity.current_session(token)


async def require_viewer(
    viewer: Optional[UserIdentity] = Depends(get_viewer),
) -> UserIdentity:
    if viewer is None:
        raise AuthRequiredError()
    return viewer
