"""
Filter and sort engine for the browse screen.

A pure function of (catalog, FilterSpec): no I/O, never mutates the input
list or its records, always returns a new list.

Stages run in a fixed order: favorites-only, free-text search, subjects,
key stages, then sort. All predicates are conjunctive, so the order only
affects how early the list shrinks.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Callable, Iterable, List, Sequence

from pyuca import Collator

from .enums import SortBy
from .schemas import EnrichedArtifact, FilterSpec

Predicate = Callable[[EnrichedArtifact], bool]


@lru_cache(maxsize=1)
def _collator() -> Collator:
    # Unicode collation: case and accents only break ties, independent of
    # the process locale
    return Collator()


def matches_search(artifact: EnrichedArtifact, search_text: str) -> bool:
    """Case-insensitive substring match over title, description and prompt."""
    needle = search_text.casefold()
    haystacks = (artifact.title, artifact.description, artifact.first_prompt)
    return any(text and needle in text.casefold() for text in haystacks)


def _facet_predicates(spec: FilterSpec) -> List[Predicate]:
    predicates: List[Predicate] = []

    if spec.favorites_only:
        predicates.append(lambda a: a.user_has_favorited)

    if spec.search_text:
        predicates.append(lambda a: matches_search(a, spec.search_text))

    # OR within a facet, AND across facets
    if spec.subjects:
        predicates.append(lambda a: any(s in spec.subjects for s in a.subjects))

    if spec.key_stages:
        predicates.append(lambda a: any(k in spec.key_stages for k in a.key_stages))

    return predicates


def sort_artifacts(
    artifacts: Iterable[EnrichedArtifact], sort_by: SortBy
) -> List[EnrichedArtifact]:
    """Return a sorted copy. All modes are stable."""
    if sort_by == SortBy.MOST_VOTED:
        return sorted(artifacts, key=lambda a: a.vote_count, reverse=True)
    if sort_by == SortBy.ALPHABETICAL:
        collate = _collator().sort_key
        return sorted(artifacts, key=lambda a: collate(a.title))
    # newest: input is already newest-first
    return list(artifacts)


def apply_filters(
    catalog: Sequence[EnrichedArtifact], spec: FilterSpec
) -> List[EnrichedArtifact]:
    """Derive the visible slice of ``catalog`` described by ``spec``."""
    visible: Iterable[EnrichedArtifact] = catalog
    for predicate in _facet_predicates(spec):
        visible = [a for a in visible if predicate(a)]
    return sort_artifacts(visible, spec.sort_by)
