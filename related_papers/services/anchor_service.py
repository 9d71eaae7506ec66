from __future__ import annotations

from dataclasses import dataclass
import math
from typing import List, Optional, Sequence, Set

from ..core.models import Anchor, ReferenceEntry
from .review_filter import is_generic_review_title, is_review_like


@dataclass(frozen=True)
class AnchorPolicy:
    """Citation-count heuristics for picking coupling anchors.

    References with too few citations yield too few citing papers to sample;
    references with too many are generic and add noise. Mid-cited references
    near ``target_citations`` are preferred.
    """

    min_citations: int = 5
    max_citations: int = 300
    too_high_citations: int = 1500
    target_citations: int = 50
    unknown_weight: float = 0.25

    def priority(self, citations: Optional[int]) -> int:
        if citations is None:
            return 2
        if citations < self.min_citations:
            return 3
        if citations <= self.max_citations:
            return 0
        if citations <= self.too_high_citations:
            return 1
        return 4

    def distance(self, citations: Optional[int]) -> float:
        if citations is None:
            return math.inf
        return abs(math.log10(citations + 1) - math.log10(self.target_citations + 1))

    def weight(self, citations: Optional[int]) -> float:
        """Down-weight broadly cited anchors so no single anchor dominates."""

        if citations is None or not math.isfinite(citations) or citations < 0:
            return self.unknown_weight
        return 1.0 / (1.0 + math.log1p(max(0, citations)))


DEFAULT_ANCHOR_POLICY = AnchorPolicy()


def select_anchors(
    seed_references: Sequence[ReferenceEntry],
    max_anchors: int,
    *,
    exclude_review_articles: bool = False,
    policy: AnchorPolicy = DEFAULT_ANCHOR_POLICY,
) -> List[Anchor]:
    """Choose up to ``max_anchors`` seed references to search for coupled papers.

    Entries without a recid are skipped, duplicates keep their first
    occurrence, and the ordering is (priority bucket, log-distance from the
    target citation count, original index).
    """

    if max_anchors <= 0:
        return []

    seen: Set[str] = set()
    ranked = []
    for index, entry in enumerate(seed_references):
        if is_generic_review_title(entry.title):
            continue
        if exclude_review_articles and is_review_like(entry):
            continue
        recid = entry.recid
        if not recid or recid in seen:
            continue
        seen.add(recid)

        citations = entry.citation_score
        title = entry.title if entry.title and entry.title.strip() else recid
        ranked.append(
            (
                policy.priority(citations),
                policy.distance(citations),
                index,
                Anchor(recid=recid, title=title, weight=policy.weight(citations)),
            )
        )

    ranked.sort(key=lambda item: item[:3])
    return [anchor for *_, anchor in ranked[:max_anchors]]


def total_anchor_weight(anchors: Sequence[Anchor]) -> float:
    return sum(anchor.weight for anchor in anchors if math.isfinite(anchor.weight))
