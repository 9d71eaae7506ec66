from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol, Set


@dataclass
class PublicationInfo:
    """Journal/volume/pages block of a literature record."""

    journal_title: Optional[str] = None
    journal_title_abbrev: Optional[str] = None
    journal_volume: Optional[str] = None
    journal_issue: Optional[str] = None
    year: Optional[int] = None
    artid: Optional[str] = None
    page_start: Optional[str] = None
    page_end: Optional[str] = None
    material: Optional[str] = None


@dataclass
class PublicationNote:
    """Secondary publication block such as an erratum or addendum."""

    label: str
    info: PublicationInfo


@dataclass
class ReferenceEntry:
    """Normalized literature record, optionally carrying related-paper scores."""

    id: str
    title: str
    recid: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    total_authors: int = 0
    author_text: str = ""
    year: Optional[int] = None
    citation_count: Optional[int] = None
    citation_count_without_self: Optional[int] = None
    document_type: List[str] = field(default_factory=list)
    publication_info: Optional[PublicationInfo] = None
    publication_info_errata: List[PublicationNote] = field(default_factory=list)
    summary: str = ""
    doi: Optional[str] = None
    arxiv_id: Optional[str] = None
    arxiv_categories: List[str] = field(default_factory=list)
    inspire_url: Optional[str] = None
    fallback_url: Optional[str] = None
    label: Optional[str] = None
    local_link: Optional[str] = None

    # Populated by the related-papers ranker.
    shared_ref_count: Optional[int] = None
    shared_ref_titles: List[str] = field(default_factory=list)
    coupling_score: Optional[float] = None
    co_citation_count: Optional[int] = None
    co_citation_score: Optional[float] = None
    combined_score: Optional[float] = None

    @property
    def citation_score(self) -> Optional[int]:
        """Citation count preferring the value without self-citations."""

        raw = self.citation_count_without_self
        if raw is None:
            raw = self.citation_count
        if raw is None or raw < 0:
            return None
        return raw


@dataclass(frozen=True)
class Anchor:
    """Seed reference used to search for papers with shared bibliography."""

    recid: str
    title: str
    weight: float


@dataclass
class CandidateAggregate:
    """Per-candidate accumulator for one related-papers request."""

    entry: ReferenceEntry
    seen_anchors: Set[str] = field(default_factory=set)
    shared_count: int = 0
    shared_titles: List[str] = field(default_factory=list)
    weighted_score: float = 0.0
    co_citation_count: Optional[int] = None
    co_citation_score: Optional[float] = None


@dataclass
class RelatedPapersParams:
    """Tunable limits for one related-papers request."""

    max_anchors: int = 15
    per_anchor: int = 25
    max_results: int = 50
    exclude_review_articles: bool = True
    concurrency: int = 2
    cocitation_top_n: int = 30

    @classmethod
    def normalized(cls, params: Optional["RelatedPapersParams"] = None, **overrides) -> "RelatedPapersParams":
        """Return params where missing or non-positive values fall back to defaults."""

        defaults = cls()
        source = params or defaults
        values = {
            "max_anchors": overrides.get("max_anchors", source.max_anchors),
            "per_anchor": overrides.get("per_anchor", source.per_anchor),
            "max_results": overrides.get("max_results", source.max_results),
            "concurrency": overrides.get("concurrency", source.concurrency),
            "cocitation_top_n": overrides.get("cocitation_top_n", source.cocitation_top_n),
        }
        resolved = {
            name: _positive_int(value, getattr(defaults, name)) for name, value in values.items()
        }
        exclude = overrides.get("exclude_review_articles", source.exclude_review_articles)
        if not isinstance(exclude, bool):
            exclude = defaults.exclude_review_articles
        return cls(exclude_review_articles=exclude, **resolved)


@dataclass
class RelatedPapersProgress:
    """Snapshot of a running request."""

    processed_anchors: int
    total_anchors: int
    entries: List[ReferenceEntry] = field(default_factory=list)
    done: bool = False


class LibraryView(Protocol):
    """Read-only view of the caller's own library."""

    def get_seed_reference_ids(self) -> Iterable[str]:
        ...

    def get_local_link_for_record(self, recid: str) -> Optional[str]:
        ...


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value != value or value <= 0 or value == float("inf"):
        return default
    return max(1, int(value))


__all__ = [
    "Anchor",
    "CandidateAggregate",
    "LibraryView",
    "PublicationInfo",
    "PublicationNote",
    "ReferenceEntry",
    "RelatedPapersParams",
    "RelatedPapersProgress",
]
