"""Co-citation re-ranking for coupling candidates.

Bibliographic coupling over-weights papers that happen to cite a few of the
same anchors. How often a candidate is cited together with the seed across
the whole citing corpus is a stronger relatedness signal, but only once the
seed has enough citing papers for the counts to mean something, so the blend
weight grows with the seed's citation count.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Dict, List, Optional

from ..core.cancellation import CancellationToken, raise_if_cancelled
from ..core.models import CandidateAggregate, RelatedPapersParams
from ..providers.clients.base import ClientError
from ..providers.clients.inspire import citing_query, co_citing_query
from .ranking import rank_candidates
from .workers import run_striped

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoCitationModel:
    """Constants of the seed-citations to blend-weight curve."""

    max_weight: float = 0.5
    min_citations: int = 5
    sigmoid_center: float = 20.0
    sigmoid_slope: float = 0.15

    def blend_weight(self, seed_citation_count: Optional[float]) -> float:
        """Sigmoid in the seed's citing count, capped at ``max_weight``; 0 below ``min_citations``."""

        if (
            seed_citation_count is None
            or not math.isfinite(seed_citation_count)
            or seed_citation_count < self.min_citations
        ):
            return 0.0
        x = self.sigmoid_slope * (seed_citation_count - self.sigmoid_center)
        weight = self.max_weight / (1.0 + math.exp(-x))
        if not math.isfinite(weight) or weight <= 0:
            return 0.0
        return min(self.max_weight, weight)


DEFAULT_COCITATION_MODEL = CoCitationModel()


def normalized_co_citation(
    co_cited_count: Optional[float],
    seed_citation_count: Optional[float],
    candidate_citation_count: Optional[float],
) -> float:
    """Cosine similarity of the two citing sets, clamped to ``[0, 1]``."""

    for value in (co_cited_count, seed_citation_count, candidate_citation_count):
        if value is None or not math.isfinite(value) or value <= 0:
            return 0.0
    denominator = math.sqrt(seed_citation_count * candidate_citation_count)
    if not math.isfinite(denominator) or denominator <= 0:
        return 0.0
    return min(1.0, max(0.0, co_cited_count / denominator))


class CoCitationRefiner:
    """Fetch co-citation counts for the best coupling candidates."""

    def __init__(
        self,
        client,
        *,
        params: RelatedPapersParams,
        model: CoCitationModel = DEFAULT_COCITATION_MODEL,
        token: Optional[CancellationToken] = None,
    ) -> None:
        self.client = client
        self.params = params
        self.model = model
        self.token = token

    def seed_citing_total(self, seed_recid: str) -> int:
        raise_if_cancelled(self.token)
        try:
            return self.client.count(citing_query(seed_recid), token=self.token)
        except ClientError as exc:
            logger.warning("Citing count lookup failed for seed=%s: %s", seed_recid, exc)
            return 0

    def refine(
        self,
        candidates: Dict[str, CandidateAggregate],
        seed_recid: str,
        *,
        total_anchor_weight: float,
    ) -> float:
        """Attach co-citation scores in place and return the blend weight to rank with."""

        seed_total = self.seed_citing_total(seed_recid)
        weight = self.model.blend_weight(seed_total)
        if weight <= 0 or not candidates:
            logger.debug("Skipping co-citation phase: seed_citing_total=%s", seed_total)
            return weight

        top = rank_candidates(
            candidates.values(),
            min(self.params.cocitation_top_n, len(candidates)),
            total_anchor_weight=total_anchor_weight,
        )
        recids: List[str] = [entry.recid for entry in top if entry.recid]

        def refine_one(index: int) -> None:
            recid = recids[index]
            aggregate = candidates.get(recid)
            if aggregate is None:
                return
            candidate_total = aggregate.entry.citation_score or 0
            if candidate_total <= 0:
                return
            try:
                co_cited = self.client.count(co_citing_query(seed_recid, recid), token=self.token)
            except ClientError as exc:
                logger.warning("Co-citation lookup failed for seed=%s candidate=%s: %s", seed_recid, recid, exc)
                return
            # Each recid belongs to exactly one worker.
            aggregate.co_citation_count = co_cited or None
            aggregate.co_citation_score = normalized_co_citation(co_cited, seed_total, candidate_total)

        run_striped(len(recids), self.params.concurrency, refine_one, token=self.token, name="cocitation")

        logger.info(
            "Co-citation phase: seed_citing_total=%s weight=%.3f candidates=%s",
            seed_total,
            weight,
            len(recids),
        )
        return weight
