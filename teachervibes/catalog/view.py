"""
Catalog state held by the view shell.

Reloads are stamped with a monotonically increasing generation. When two
reloads overlap, only the most recently requested one may replace the
catalog; an older completion that arrives late is dropped.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from .aggregator import CatalogAggregator
from .errors import CatalogLoadError
from .filters import apply_filters
from .schemas import EnrichedArtifact, FilterSpec

logger = structlog.get_logger()


class CatalogView:
    """The single writer of the displayed catalog list."""

    def __init__(self, aggregator: CatalogAggregator):
        self.aggregator = aggregator
        self.artifacts: List[EnrichedArtifact] = []
        self.generation = 0
        self.applied_generation = 0
        self.last_error: Optional[CatalogLoadError] = None

    @property
    def loaded(self) -> bool:
        return self.applied_generation > 0

    async def refresh(self, viewer_id: Optional[str] = None) -> bool:
        """Reload the catalog.

        Returns:
            True if this reload's result was applied, False if a newer
            reload was requested meanwhile and this result was discarded.

        Raises:
            CatalogLoadError: If the latest reload failed. The previously
                displayed catalog is kept.
        """
        self.generation += 1
        generation = self.generation

        try:
            artifacts = await self.aggregator.load_catalog(viewer_id)
        except CatalogLoadError as e:
            if generation != self.generation:
                logger.info("stale_catalog_error_ignored", generation=generation)
                return False
            self.last_error = e
            raise

        if generation != self.generation:
            logger.info(
                "stale_catalog_discarded",
                generation=generation,
                latest=self.generation,
            )
            return False

        self.artifacts = artifacts
        self.applied_generation = generation
        self.last_error = None
        return True

    def visible(self, spec: FilterSpec) -> List[EnrichedArtifact]:
        """Run the filter/sort engine over the current catalog."""
        return apply_filters(self.artifacts, spec)
