"""Core data models, identifiers, and configuration for related papers."""

from .cancellation import CancellationToken
from .identifiers import normalize_arxiv_id, normalize_doi
from .models import (
    Anchor,
    CandidateAggregate,
    LibraryView,
    PublicationInfo,
    PublicationNote,
    ReferenceEntry,
    RelatedPapersParams,
    RelatedPapersProgress,
)
from .settings import RelatedPapersSettings

__all__ = [
    "Anchor",
    "CancellationToken",
    "CandidateAggregate",
    "LibraryView",
    "PublicationInfo",
    "PublicationNote",
    "ReferenceEntry",
    "RelatedPapersParams",
    "RelatedPapersProgress",
    "RelatedPapersSettings",
    "normalize_arxiv_id",
    "normalize_doi",
]
