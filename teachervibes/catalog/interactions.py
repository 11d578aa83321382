"""
Vote and favorite toggles.

Votes and favorites are independent (artifact, user) relations. A toggle
either inserts the viewer's row or deletes it; rows are never updated.
"""

from __future__ import annotations

from typing import Optional

import structlog

from ..gateway.base import Gateway
from .enums import Collection
from .errors import ArtifactNotFoundError, AuthRequiredError
from .schemas import UserIdentity

logger = structlog.get_logger()


async def _toggle(
    gateway: Gateway,
    collection: Collection,
    viewer: Optional[UserIdentity],
    artifact_id: str,
    currently_set: Optional[bool],
) -> bool:
    if viewer is None:
        raise AuthRequiredError()

    key = {"artifact_id": artifact_id, "user_id": viewer.id}
    if currently_set is None:
        currently_set = await gateway.exists(collection, key)

    if currently_set:
        await gateway.delete(collection, key)
    else:
        if not await gateway.exists(Collection.ARTIFACTS, {"id": artifact_id}):
            raise ArtifactNotFoundError(artifact_id)
        await gateway.insert(collection, [key])

    logger.info(
        "toggled",
        collection=collection.value,
        artifact_id=artifact_id,
        user_id=viewer.id,
        active=not currently_set,
    )
    return not currently_set


async def toggle_vote(
    gateway: Gateway,
    viewer: Optional[UserIdentity],
    artifact_id: str,
    currently_voted: Optional[bool] = None,
) -> bool:
    """Add or remove the viewer's vote. Returns whether a vote now exists.

    ``currently_voted`` is the state the viewer saw; when omitted it is
    looked up first.

    Raises:
        AuthRequiredError: If nobody is signed in. No call is made.
    """
    return await _toggle(gateway, Collection.VOTES, viewer, artifact_id, currently_voted)


async def toggle_favorite(
    gateway: Gateway,
    viewer: Optional[UserIdentity],
    artifact_id: str,
    currently_favorited: Optional[bool] = None,
) -> bool:
    """Add or remove the viewer's favorite. Returns whether one now exists."""
    return await _toggle(
        gateway, Collection.FAVORITES, viewer, artifact_id, currently_favorited
    )
