from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..core.cancellation import CancellationToken, raise_if_cancelled
from ..core.models import ReferenceEntry
from ..providers.adapters import apply_enrichment, reference_item_to_entry
from ..providers.clients.base import ClientError
from ..providers.clients.inspire import ENRICHMENT_FIELDS, recid_batch_query

logger = logging.getLogger(__name__)

ENRICHMENT_BATCH_SIZE = 50


class SeedReferenceService:
    """Load a seed record's bibliography with the metadata anchor selection needs.

    Bibliography items carry no citation counts, so every item with a recid
    is looked up again in ``recid:a OR recid:b`` batches.
    """

    def __init__(self, client, *, batch_size: int = ENRICHMENT_BATCH_SIZE) -> None:
        self.client = client
        self.batch_size = max(1, batch_size)

    def load(
        self, seed_recid: str, *, token: Optional[CancellationToken] = None
    ) -> List[ReferenceEntry]:
        items = self.client.get_references(seed_recid, token=token)
        entries = [reference_item_to_entry(item, index) for index, item in enumerate(items)]
        self.enrich(entries, token=token)
        logger.info("Loaded %s references for seed=%s", len(entries), seed_recid)
        return entries

    def enrich(
        self, entries: List[ReferenceEntry], *, token: Optional[CancellationToken] = None
    ) -> None:
        by_recid: Dict[str, List[ReferenceEntry]] = {}
        for entry in entries:
            if entry.recid:
                by_recid.setdefault(entry.recid, []).append(entry)

        recids = list(by_recid)
        for start in range(0, len(recids), self.batch_size):
            raise_if_cancelled(token)
            batch = recids[start : start + self.batch_size]
            try:
                result = self.client.search(
                    recid_batch_query(batch),
                    size=len(batch),
                    fields=ENRICHMENT_FIELDS,
                    token=token,
                )
            except ClientError as exc:
                logger.warning(
                    "Reference enrichment failed for %s recids starting at %s: %s",
                    len(batch),
                    batch[0],
                    exc,
                )
                continue
            for metadata in result.hits:
                for entry in by_recid.get(metadata.recid or "", []):
                    apply_enrichment(entry, metadata)
