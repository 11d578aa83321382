"""Tests for vote and favorite toggles."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from teachervibes.catalog import (
    ArtifactNotFoundError,
    AuthRequiredError,
    Collection,
    UserIdentity,
)
from teachervibes.catalog.interactions import toggle_favorite, toggle_vote
from teachervibes.gateway import Gateway

ALICE = UserIdentity(id="alice", email="alice@school.example")


@pytest_asyncio.fixture
async def artifact_id(gateway):
    rows = await gateway.insert(
        Collection.ARTIFACTS,
        [
            {
                "title": "Fraction Wall",
                "artifact_url": "https://claude.ai/public/artifacts/f1",
                "user_id": "bob",
                "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
            }
        ],
    )
    return rows[0]["id"]


class TestToggleVote:
    @pytest.mark.asyncio
    async def test_toggle_twice_restores_state(self, gateway, artifact_id):
        key = {"artifact_id": artifact_id, "user_id": ALICE.id}

        assert await toggle_vote(gateway, ALICE, artifact_id) is True
        assert await gateway.count(Collection.VOTES, key) == 1

        assert await toggle_vote(gateway, ALICE, artifact_id) is False
        assert await gateway.count(Collection.VOTES, key) == 0

    @pytest.mark.asyncio
    async def test_uses_state_the_viewer_saw(self, gateway, artifact_id):
        assert await toggle_vote(gateway, ALICE, artifact_id, currently_voted=False)
        assert not await toggle_vote(gateway, ALICE, artifact_id, currently_voted=True)
        assert await gateway.count(Collection.VOTES, {"artifact_id": artifact_id}) == 0

    @pytest.mark.asyncio
    async def test_vote_does_not_touch_favorites(self, gateway, artifact_id):
        await toggle_vote(gateway, ALICE, artifact_id)
        assert await gateway.count(Collection.FAVORITES, {"artifact_id": artifact_id}) == 0

    @pytest.mark.asyncio
    async def test_unknown_artifact(self, gateway):
        with pytest.raises(ArtifactNotFoundError):
            await toggle_vote(gateway, ALICE, "missing")
        assert await gateway.count(Collection.VOTES) == 0

    @pytest.mark.asyncio
    async def test_anonymous_makes_no_calls(self):
        gateway = AsyncMock(spec=Gateway)
        with pytest.raises(AuthRequiredError):
            await toggle_vote(gateway, None, "a1")
        assert gateway.mock_calls == []


class TestToggleFavorite:
    @pytest.mark.asyncio
    async def test_toggle_twice_restores_state(self, gateway, artifact_id):
        key = {"artifact_id": artifact_id, "user_id": ALICE.id}

        assert await toggle_favorite(gateway, ALICE, artifact_id) is True
        assert await gateway.exists(Collection.FAVORITES, key)

        assert await toggle_favorite(gateway, ALICE, artifact_id) is False
        assert not await gateway.exists(Collection.FAVORITES, key)

    @pytest.mark.asyncio
    async def test_favorites_are_per_user(self, gateway, artifact_id):
        bob = UserIdentity(id="bob", email="bob@school.example")
        await toggle_favorite(gateway, ALICE, artifact_id)
        await toggle_favorite(gateway, bob, artifact_id)
        await toggle_favorite(gateway, ALICE, artifact_id)
        assert await gateway.count(Collection.FAVORITES, {"artifact_id": artifact_id}) == 1

    @pytest.mark.asyncio
    async def test_anonymous_makes_no_calls(self):
        gateway = AsyncMock(spec=Gateway)
        with pytest.raises(AuthRequiredError):
            await toggle_favorite(gateway, None, "a1")
        assert gateway.mock_calls == []
