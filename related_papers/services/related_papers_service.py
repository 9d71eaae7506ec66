from __future__ import annotations

import logging
import queue
import threading
from typing import Iterator, List, Optional, Sequence, Set

from ..core.cancellation import CancellationToken, raise_if_cancelled
from ..core.models import (
    LibraryView,
    ReferenceEntry,
    RelatedPapersParams,
    RelatedPapersProgress,
)
from .anchor_service import DEFAULT_ANCHOR_POLICY, AnchorPolicy, select_anchors, total_anchor_weight
from .cocitation_service import DEFAULT_COCITATION_MODEL, CoCitationModel, CoCitationRefiner
from .coupling_service import CouplingAggregator, ProgressCallback
from .ranking import MIN_TOTAL_ANCHOR_WEIGHT, rank_candidates

logger = logging.getLogger(__name__)

_STREAM_DONE = object()


class RelatedPapersService:
    """Recommend papers related to a seed record through its bibliography.

    The pipeline is: pick anchors among the seed references, aggregate
    bibliographic coupling over papers citing those anchors, re-rank the
    strongest candidates by co-citation with the seed, and return the ranked
    list. Upstream failures only reduce the candidate pool; the one error
    that escapes is :class:`RelatedPapersCancelled`.
    """

    def __init__(
        self,
        client,
        *,
        anchor_policy: AnchorPolicy = DEFAULT_ANCHOR_POLICY,
        cocitation_model: CoCitationModel = DEFAULT_COCITATION_MODEL,
    ) -> None:
        self.client = client
        self.anchor_policy = anchor_policy
        self.cocitation_model = cocitation_model

    def fetch_related(
        self,
        seed_recid: str,
        seed_references: Sequence[ReferenceEntry],
        *,
        params: Optional[RelatedPapersParams] = None,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
        library: Optional[LibraryView] = None,
    ) -> List[ReferenceEntry]:
        params = RelatedPapersParams.normalized(params)
        raise_if_cancelled(token)

        anchors = select_anchors(
            seed_references,
            params.max_anchors,
            exclude_review_articles=params.exclude_review_articles,
            policy=self.anchor_policy,
        )
        if not anchors:
            logger.info("No usable anchors for seed=%s", seed_recid)
            return []

        logger.info(
            "Related papers: seed=%s anchors=%s per_anchor=%s concurrency=%s",
            seed_recid,
            len(anchors),
            params.per_anchor,
            params.concurrency,
        )
        anchor_weight = max(MIN_TOTAL_ANCHOR_WEIGHT, total_anchor_weight(anchors))

        excluded: Set[str] = {entry.recid for entry in seed_references if entry.recid}
        if library is not None:
            excluded.update(library.get_seed_reference_ids())

        aggregator = CouplingAggregator(
            self.client,
            seed_recid=seed_recid,
            excluded_recids=excluded,
            params=params,
            total_anchor_weight=anchor_weight,
            token=token,
            on_progress=on_progress,
            library=library,
        )
        candidates = aggregator.aggregate(anchors)
        raise_if_cancelled(token)

        refiner = CoCitationRefiner(
            self.client, params=params, model=self.cocitation_model, token=token
        )
        co_citation_weight = refiner.refine(
            candidates, seed_recid, total_anchor_weight=anchor_weight
        )
        raise_if_cancelled(token)

        results = rank_candidates(
            candidates.values(),
            params.max_results,
            total_anchor_weight=anchor_weight,
            co_citation_weight=co_citation_weight,
        )
        if on_progress is not None and aggregator.processed == len(anchors):
            on_progress(
                RelatedPapersProgress(
                    processed_anchors=aggregator.processed,
                    total_anchors=len(anchors),
                    entries=results,
                    done=True,
                )
            )
        logger.info(
            "Related papers for seed=%s: candidates=%s returned=%s",
            seed_recid,
            len(candidates),
            len(results),
        )
        return results

    def stream_related(
        self,
        seed_recid: str,
        seed_references: Sequence[ReferenceEntry],
        *,
        params: Optional[RelatedPapersParams] = None,
        token: Optional[CancellationToken] = None,
        library: Optional[LibraryView] = None,
    ) -> Iterator[RelatedPapersProgress]:
        """Yield progress snapshots, ending with a ``done`` snapshot of the final ranking.

        The pipeline runs on a background thread. Closing the generator
        early cancels the request; errors raised by the pipeline are
        re-raised to the consumer.
        """

        token = token or CancellationToken()
        snapshots: "queue.Queue[object]" = queue.Queue()
        outcome: dict = {}

        def run() -> None:
            try:
                outcome["results"] = self.fetch_related(
                    seed_recid,
                    seed_references,
                    params=params,
                    token=token,
                    on_progress=snapshots.put,
                    library=library,
                )
            except BaseException as exc:  # re-raised in the consuming thread
                outcome["error"] = exc
            finally:
                snapshots.put(_STREAM_DONE)

        thread = threading.Thread(target=run, name=f"related-{seed_recid}", daemon=True)
        thread.start()
        finished = False
        try:
            while True:
                item = snapshots.get()
                if item is _STREAM_DONE:
                    break
                if isinstance(item, RelatedPapersProgress) and item.done:
                    finished = True
                yield item
            if "error" in outcome:
                raise outcome["error"]
            if not finished:
                yield RelatedPapersProgress(
                    processed_anchors=0,
                    total_anchors=0,
                    entries=outcome.get("results", []),
                    done=True,
                )
        finally:
            if thread.is_alive():
                token.cancel()
            thread.join()
