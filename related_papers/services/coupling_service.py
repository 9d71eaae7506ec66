from __future__ import annotations

from collections import deque
import logging
import threading
import time
from typing import Callable, Deque, Dict, Iterable, List, Optional, Set

from ..core.cancellation import CancellationToken, raise_if_cancelled
from ..core.models import (
    Anchor,
    CandidateAggregate,
    LibraryView,
    RelatedPapersParams,
    RelatedPapersProgress,
)
from ..providers.adapters import literature_metadata_to_entry
from ..providers.clients.base import ClientError
from ..providers.clients.inspire import LIST_DISPLAY_FIELDS, SORT_MOST_CITED, citing_query
from ..providers.schema import LiteratureMetadata
from .ranking import rank_candidates
from .review_filter import is_generic_review_title, is_review_document_type, is_review_journal
from .workers import run_striped

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL_SECONDS = 0.2
MAX_SHARED_TITLES = 3

ProgressCallback = Callable[[RelatedPapersProgress], None]


class CouplingAggregator:
    """Accumulate bibliographic-coupling scores over a set of anchors.

    For every anchor the most-cited papers citing it are fetched, and each
    hit gains the anchor's weight once. Anchors are spread over a striped
    thread pool; every read or write of the shared candidate map happens
    under ``_lock``.
    """

    def __init__(
        self,
        client,
        *,
        seed_recid: str,
        excluded_recids: Iterable[str],
        params: RelatedPapersParams,
        total_anchor_weight: float,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
        library: Optional[LibraryView] = None,
    ) -> None:
        self.client = client
        self.seed_recid = seed_recid
        self.excluded_recids: Set[str] = {seed_recid, *excluded_recids}
        self.params = params
        self.total_anchor_weight = total_anchor_weight
        self.token = token
        self.on_progress = on_progress
        self.library = library

        self.candidates: Dict[str, CandidateAggregate] = {}
        self.processed = 0
        self._lock = threading.Lock()
        self._progress_lock = threading.Lock()
        self._last_progress_at = 0.0
        self._last_reported = 0
        self._pending_snapshots: Deque[RelatedPapersProgress] = deque()
        self._delivery_lock = threading.Lock()

    def aggregate(self, anchors: List[Anchor]) -> Dict[str, CandidateAggregate]:
        def process(index: int) -> None:
            anchor = anchors[index]
            hits = self._fetch_citing(anchor)
            with self._lock:
                for metadata in hits:
                    self._accumulate(anchor, metadata)
                self.processed += 1
                processed = self.processed
            self._report(processed, len(anchors))

        run_striped(len(anchors), self.params.concurrency, process, token=self.token, name="coupling")
        logger.debug(
            "Coupling finished: anchors=%s candidates=%s", len(anchors), len(self.candidates)
        )
        return self.candidates

    def _fetch_citing(self, anchor: Anchor) -> List[LiteratureMetadata]:
        try:
            result = self.client.search(
                citing_query(anchor.recid),
                size=self.params.per_anchor,
                sort=SORT_MOST_CITED,
                page=1,
                fields=LIST_DISPLAY_FIELDS,
                token=self.token,
            )
        except ClientError as exc:
            logger.warning("Citing lookup failed for anchor=%s: %s", anchor.recid, exc)
            return []
        return result.hits

    def _accepts(self, metadata: LiteratureMetadata) -> bool:
        recid = metadata.recid
        if not recid or recid in self.excluded_recids:
            return False
        if is_generic_review_title(metadata.title):
            return False
        if self.params.exclude_review_articles and (
            is_review_document_type(metadata.document_type)
            or is_review_journal(metadata.publication_info)
        ):
            return False
        return True

    def _accumulate(self, anchor: Anchor, metadata: LiteratureMetadata) -> None:
        if not self._accepts(metadata):
            return
        recid = metadata.recid
        aggregate = self.candidates.get(recid)
        if aggregate is None:
            entry = literature_metadata_to_entry(
                metadata, entry_id=f"related-{self.seed_recid}-{recid}"
            )
            if self.library is not None:
                entry.local_link = self.library.get_local_link_for_record(recid)
            aggregate = CandidateAggregate(entry=entry)
            self.candidates[recid] = aggregate

        if anchor.recid in aggregate.seen_anchors:
            return
        aggregate.seen_anchors.add(anchor.recid)
        aggregate.shared_count += 1
        aggregate.weighted_score += anchor.weight
        if len(aggregate.shared_titles) < MAX_SHARED_TITLES:
            aggregate.shared_titles.append(anchor.title)

    def _report(self, processed: int, total: int) -> None:
        if self.on_progress is None:
            return
        with self._progress_lock:
            if self.token is not None and self.token.cancelled:
                return
            now = time.monotonic()
            finished = processed == total
            if processed < self._last_reported:
                return
            if not finished and now - self._last_progress_at < PROGRESS_INTERVAL_SECONDS:
                return
            self._last_progress_at = now
            self._last_reported = processed
            with self._lock:
                entries = rank_candidates(
                    list(self.candidates.values()),
                    self.params.max_results,
                    total_anchor_weight=self.total_anchor_weight,
                )
            snapshot = RelatedPapersProgress(
                processed_anchors=processed, total_anchors=total, entries=entries
            )
            self._pending_snapshots.append(snapshot)
        self._deliver_snapshots()

    def _deliver_snapshots(self) -> None:
        # Snapshots leave in acceptance order through a single delivering thread.
        while self._delivery_lock.acquire(blocking=False):
            try:
                while True:
                    with self._progress_lock:
                        if not self._pending_snapshots:
                            break
                        snapshot = self._pending_snapshots.popleft()
                    self.on_progress(snapshot)
            finally:
                self._delivery_lock.release()
            with self._progress_lock:
                if not self._pending_snapshots:
                    return
