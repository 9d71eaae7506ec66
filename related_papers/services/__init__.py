"""Service layer for the related_papers package."""

from .anchor_service import AnchorPolicy, select_anchors
from .cocitation_service import CoCitationModel, CoCitationRefiner, normalized_co_citation
from .coupling_service import CouplingAggregator
from .ranking import rank_candidates
from .related_papers_service import RelatedPapersService
from .review_filter import is_review_like
from .seed_reference_service import SeedReferenceService

__all__ = [
    "AnchorPolicy",
    "CoCitationModel",
    "CoCitationRefiner",
    "CouplingAggregator",
    "RelatedPapersService",
    "SeedReferenceService",
    "is_review_like",
    "normalized_co_citation",
    "rank_candidates",
    "select_anchors",
]
