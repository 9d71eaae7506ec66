"""Related-paper recommendations for INSPIRE-HEP records."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .api import RelatedPapersClient
from .core.cancellation import CancellationToken
from .core.models import Anchor, ReferenceEntry, RelatedPapersParams, RelatedPapersProgress
from .exceptions import RelatedPapersCancelled, RelatedPapersError
from .services import anchor_service

_default_client: Optional[RelatedPapersClient] = None


def get_default_client() -> RelatedPapersClient:
    """Return the default ``RelatedPapersClient`` instance, creating it lazily."""

    global _default_client
    if _default_client is None:
        _default_client = RelatedPapersClient()
    return _default_client


def fetch_related(
    seed_recid: str,
    seed_references: Sequence[ReferenceEntry],
    *,
    token: Optional[CancellationToken] = None,
    on_progress=None,
    **overrides,
) -> List[ReferenceEntry]:
    """Rank papers sharing bibliography with ``seed_recid``.

    ``seed_references`` should carry citation counts; see
    :func:`fetch_related_for_recid` to load them from INSPIRE.
    """

    return get_default_client().fetch_related(
        seed_recid, seed_references, token=token, on_progress=on_progress, **overrides
    )


def fetch_related_for_recid(
    seed_recid: str,
    *,
    token: Optional[CancellationToken] = None,
    on_progress=None,
    **overrides,
) -> List[ReferenceEntry]:
    """Load the references of ``seed_recid`` and rank related papers."""

    return get_default_client().fetch_related_for_recid(
        seed_recid, token=token, on_progress=on_progress, **overrides
    )


def select_anchors(
    seed_references: Sequence[ReferenceEntry],
    max_anchors: int,
    *,
    exclude_review_articles: bool = False,
) -> List[Anchor]:
    """Pick the seed references used to search for coupled papers.

    Pure function of its arguments: no client is built and no environment
    configuration is read.
    """

    return anchor_service.select_anchors(
        seed_references,
        max_anchors,
        exclude_review_articles=exclude_review_articles,
        policy=anchor_service.DEFAULT_ANCHOR_POLICY,
    )


__all__ = [
    "Anchor",
    "CancellationToken",
    "ReferenceEntry",
    "RelatedPapersCancelled",
    "RelatedPapersClient",
    "RelatedPapersError",
    "RelatedPapersParams",
    "RelatedPapersProgress",
    "fetch_related",
    "fetch_related_for_recid",
    "get_default_client",
    "select_anchors",
]
