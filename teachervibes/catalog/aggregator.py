"""
Catalog aggregation.

Loads every artifact with its facet tags, then enriches each one with vote
and favorite totals and the viewer's own vote/favorite/ownership status.

Fan-out shape: one ``select`` for the artifact list, then for each artifact
a scatter of four independent lookups (vote count, favorite count, viewer
vote, viewer favorite), joined once across all artifacts. Nothing caps the
number of in-flight requests; cost grows as 4 x catalog size. Replacing the
per-artifact lookups with batched queries only touches ``_enrich``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError as SchemaError

from ..gateway.base import Gateway
from .enums import Collection, SortBy
from .errors import CatalogLoadError, GatewayError
from .filters import sort_artifacts
from .schemas import Artifact, CatalogHighlights, EnrichedArtifact

logger = structlog.get_logger()

TAG_COLLECTIONS = (Collection.ARTIFACT_SUBJECTS, Collection.ARTIFACT_KEY_STAGES)


class CatalogAggregator:
    """Builds the denormalized, viewer-relative artifact list."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def _member(self, collection: Collection, artifact_id: str, viewer_id: Optional[str]) -> bool:
        if viewer_id is None:
            return False
        return await self.gateway.exists(
            collection, {"artifact_id": artifact_id, "user_id": viewer_id}
        )

    async def _enrich(self, artifact: Artifact, viewer_id: Optional[str]) -> EnrichedArtifact:
        by_artifact = {"artifact_id": artifact.id}
        vote_count, favorite_count, has_voted, has_favorited = await asyncio.gather(
            self.gateway.count(Collection.VOTES, by_artifact),
            self.gateway.count(Collection.FAVORITES, by_artifact),
            self._member(Collection.VOTES, artifact.id, viewer_id),
            self._member(Collection.FAVORITES, artifact.id, viewer_id),
        )
        return EnrichedArtifact(
            **artifact.model_dump(),
            vote_count=vote_count,
            favorite_count=favorite_count,
            user_has_voted=has_voted,
            user_has_favorited=has_favorited,
            is_owner=viewer_id is not None and artifact.user_id == viewer_id,
        )

    async def _load(
        self, viewer_id: Optional[str], filters: Optional[Dict[str, Any]]
    ) -> List[EnrichedArtifact]:
        try:
            rows = await self.gateway.select(
                Collection.ARTIFACTS,
                filters=filters,
                order_by="created_at",
                descending=True,
                expand=TAG_COLLECTIONS,
            )
            artifacts = [Artifact.from_row(row) for row in rows]
            # gather preserves input order, so the newest-first baseline holds
            enriched = await asyncio.gather(
                *(self._enrich(artifact, viewer_id) for artifact in artifacts)
            )
        except GatewayError as e:
            logger.error("catalog_load_failed", viewer_id=viewer_id, error=str(e))
            raise CatalogLoadError(f"Could not load artifacts: {e.message}") from e
        except SchemaError as e:
            logger.error("catalog_row_malformed", viewer_id=viewer_id, error=str(e))
            raise CatalogLoadError("Stored artifact data is malformed.") from e

        logger.info("catalog_loaded", viewer_id=viewer_id, artifacts=len(enriched))
        return list(enriched)

    async def load_catalog(self, viewer_id: Optional[str] = None) -> List[EnrichedArtifact]:
        """Load every artifact, newest first, enriched for ``viewer_id``.

        Raises:
            CatalogLoadError: If the list or any artifact's enrichment failed.
                No partially enriched list is ever returned.
        """
        return await self._load(viewer_id, None)

    async def load_owned(self, owner_id: str) -> List[EnrichedArtifact]:
        """Load the artifacts created by ``owner_id`` for the profile screen."""
        return await self._load(owner_id, {"user_id": owner_id})

    async def load_highlights(self, limit: int = 6) -> CatalogHighlights:
        """Summarize the catalog for the landing page.

        ``top_artifacts`` is the ``limit`` newest artifacts ranked by votes,
        so a new artifact can surface before it has collected many votes.
        """
        catalog = await self.load_catalog()
        return CatalogHighlights(
            artifact_count=len(catalog),
            contributor_count=len({a.user_id for a in catalog}),
            top_artifacts=sort_artifacts(catalog[:limit], SortBy.MOST_VOTED),
        )
