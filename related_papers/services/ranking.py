from __future__ import annotations

from dataclasses import replace
import math
from typing import Iterable, List, Tuple

from ..core.models import CandidateAggregate, ReferenceEntry

MIN_TOTAL_ANCHOR_WEIGHT = 0.0001
MAX_CO_CITATION_WEIGHT = 0.5


def _sort_key(scored: Tuple[float, CandidateAggregate]) -> tuple:
    combined, aggregate = scored
    entry = aggregate.entry
    citations = entry.citation_score
    year = entry.year
    return (
        -combined,
        -aggregate.shared_count,
        -(citations if citations is not None else -1),
        -year if year is not None else math.inf,
        entry.recid or "",
    )


def rank_candidates(
    candidates: Iterable[CandidateAggregate],
    max_results: int,
    *,
    total_anchor_weight: float,
    co_citation_weight: float = 0.0,
) -> List[ReferenceEntry]:
    """Blend coupling and co-citation scores and order candidates deterministically.

    Ties on the combined score fall through shared anchor count, citation
    count, publication year (newest first) and finally recid. The returned
    entries are copies carrying the scores; the aggregates are left untouched.
    """

    if max_results <= 0:
        return []
    total = max(MIN_TOTAL_ANCHOR_WEIGHT, total_anchor_weight)
    weight = max(0.0, min(MAX_CO_CITATION_WEIGHT, co_citation_weight))

    scored = []
    for aggregate in candidates:
        coupling = max(0.0, aggregate.weighted_score) / total
        co_citation = max(0.0, aggregate.co_citation_score or 0.0)
        combined = (1 - weight) * coupling + weight * co_citation
        scored.append((combined, aggregate, coupling))

    scored.sort(key=lambda item: _sort_key(item[:2]))

    results: List[ReferenceEntry] = []
    for combined, aggregate, coupling in scored[:max_results]:
        results.append(
            replace(
                aggregate.entry,
                shared_ref_count=aggregate.shared_count,
                shared_ref_titles=list(aggregate.shared_titles),
                coupling_score=coupling,
                co_citation_count=aggregate.co_citation_count,
                co_citation_score=aggregate.co_citation_score,
                combined_score=combined,
            )
        )
    return results
