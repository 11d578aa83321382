"""
Database-backed identity provider.

Passwords are hashed with passlib; sessions are opaque random tokens that
expire after ``session_ttl_days``.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..catalog.errors import AuthRequiredError, GatewayError, ValidationError
from ..catalog.schemas import UserIdentity
from ..db.models import SessionModel, UserModel
from .base import IdentityProvider

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlIdentityProvider(IdentityProvider):
    """Identity provider storing users and sessions in the catalog database."""

    def __init__(self, session_factory: sessionmaker, session_ttl_days: int = 7):
        self.session_factory = session_factory
        self.session_ttl = timedelta(days=session_ttl_days)

    async def sign_up(self, email: str, password: str) -> UserIdentity:
        email = email.strip().lower()
        if "@" not in email:
            raise ValidationError("email", "Enter a valid email address.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                "password",
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
            )

        db = self.session_factory()
        try:
            user = UserModel(email=email, password_hash=pwd_context.hash(password))
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info(f"Registered user {user.id}")
            return UserIdentity(id=user.id, email=user.email)
        except IntegrityError:
            db.rollback()
            raise ValidationError(
                "email", "An account with this email already exists.", "EMAIL_TAKEN"
            )
        except SQLAlchemyError as e:
            db.rollback()
            raise GatewayError("sign_up", "users", str(e)) from e
        finally:
            db.close()

    async def sign_in(self, email: str, password: str) -> str:
        db = self.session_factory()
        try:
            user = (
                db.query(UserModel)
                .filter(UserModel.email == email.strip().lower())
                .first()
            )
            if user is None or not pwd_context.verify(password, user.password_hash):
                raise AuthRequiredError("Invalid email or password.")

            token = secrets.token_urlsafe(32)
            db.add(
                SessionModel(
                    token=token,
                    user_id=user.id,
                    expires_at=datetime.now(timezone.utc) + self.session_ttl,
                )
            )
            db.commit()
            return token
        except SQLAlchemyError as e:
            db.rollback()
            raise GatewayError("sign_in", "sessions", str(e)) from e
        finally:
            db.close()

    async def sign_out(self, token: str) -> None:
        db = self.session_factory()
        try:
            db.query(SessionModel).filter(SessionModel.token == token).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise GatewayError("sign_out", "sessions", str(e)) from e
        finally:
            db.close()

    async def current_session(self, token: Optional[str]) -> Optional[UserIdentity]:
        if not token:
            return None

        db = self.session_factory()
        try:
            session = db.query(SessionModel).filter(SessionModel.token == token).first()
            if session is None:
                return None
            if _as_utc(session.expires_at) < datetime.now(timezone.utc):
                db.delete(session)
                db.commit()
                return None
            return UserIdentity(id=session.user.id, email=session.user.email)
        except SQLAlchemyError as e:
            db.rollback()
            raise GatewayError("current_session", "sessions", str(e)) from e
        finally:
            db.close()
