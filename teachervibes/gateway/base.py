"""
Persistence gateway contract.

The catalog never talks to storage directly. It goes through three narrow
async interfaces: a relational store addressed by collection name, an
object store for screenshots, and an identity provider. Any backend that
implements these can host the application.

Every failure surfaces as ``GatewayError``; implementations must not leak
driver exceptions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..catalog.enums import Collection
from ..catalog.schemas import UserIdentity

Row = Dict[str, Any]
Filters = Mapping[str, Any]


class Gateway(ABC):
    """Abstract relational store addressed by collection name."""

    @abstractmethod
    async def select(
        self,
        collection: Collection,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        expand: Sequence[Collection] = (),
    ) -> List[Row]:
        """Select rows matching all equality filters.

        Args:
            collection: Collection to read
            filters: Column -> value equality filters, all must match
            order_by: Column to order by
            descending: Reverse the ordering
            expand: Related collections to embed in each row under their name
        """

    @abstractmethod
    async def count(
        self, collection: Collection, filters: Optional[Filters] = None
    ) -> int:
        """Count rows matching all equality filters."""

    async def exists(self, collection: Collection, filters: Filters) -> bool:
        """Return True if at least one row matches."""
        return await self.count(collection, filters) > 0

    @abstractmethod
    async def insert(self, collection: Collection, rows: Iterable[Row]) -> List[Row]:
        """Insert rows and return them as stored (with generated ids)."""

    @abstractmethod
    async def update(
        self, collection: Collection, values: Row, filters: Filters
    ) -> None:
        """Set ``values`` on every row matching ``filters``."""

    @abstractmethod
    async def delete(self, collection: Collection, filters: Filters) -> None:
        """Delete every row matching ``filters``."""


class ObjectStore(ABC):
    """Abstract binary store for uploaded images."""

    @abstractmethod
    async def upload(self, name: str, data: bytes) -> str:
        """Store ``data`` under ``name`` and return the stored object key."""

    @abstractmethod
    def get_public_url(self, name: str) -> str:
        """Return an externally fetchable URL for ``name``."""


class IdentityProvider(ABC):
    """Abstract session-based identity provider."""

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> UserIdentity:
        """Register a new user."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> str:
        """Authenticate and return a session token."""

    @abstractmethod
    async def sign_out(self, token: str) -> None:
        """End the session identified by ``token``."""

    @abstractmethod
    async def current_session(self, token: Optional[str]) -> Optional[UserIdentity]:
        """Return the user behind ``token``, or None if missing or expired."""
