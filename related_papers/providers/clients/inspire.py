"""Client for the INSPIRE-HEP literature search API."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

from pydantic import ValidationError

from ...core.cancellation import CancellationToken
from ...core.settings import DEFAULT_INSPIRE_BASE_URL
from ..schema import (
    LiteratureHit,
    LiteratureMetadata,
    LiteratureSearchResponse,
    RecordReferencesResponse,
    ReferenceItem,
)
from .base import BaseHttpClient, MalformedResponseError, NotFoundError

logger = logging.getLogger(__name__)

INSPIRE_LITERATURE_URL = "https://inspirehep.net/literature"

SORT_MOST_CITED = "mostcited"
SORT_MOST_RECENT = "mostrecent"

LIST_DISPLAY_FIELDS = (
    "control_number",
    "titles.title",
    "authors.full_name",
    "authors.inspire_roles",
    "author_count",
    "publication_info",
    "earliest_date",
    "citation_count",
    "citation_count_without_self_citations",
    "document_type",
    "arxiv_eprints",
    "dois",
)
CONTROL_NUMBER_FIELDS = ("control_number",)
ENRICHMENT_FIELDS = (
    "control_number",
    "citation_count",
    "citation_count_without_self_citations",
    "document_type",
    "publication_info",
)


def citing_query(recid: str) -> str:
    """Records that cite ``recid``."""

    return f"refersto:recid:{recid}"


def co_citing_query(first_recid: str, second_recid: str) -> str:
    """Records that cite both ``first_recid`` and ``second_recid``."""

    return f"{citing_query(first_recid)} AND {citing_query(second_recid)}"


def recid_batch_query(recids: Iterable[str]) -> str:
    return " OR ".join(f"recid:{recid}" for recid in recids)


def build_search_params(
    query: str,
    *,
    size: int,
    page: int = 1,
    sort: Optional[str] = None,
    fields: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {"q": query, "size": max(1, int(size)), "page": max(1, int(page))}
    if sort:
        params["sort"] = sort
    if fields:
        params["fields"] = ",".join(fields)
    return params


@dataclass
class LiteratureSearchResult:
    """One page of validated literature hits plus the total match count."""

    hits: List[LiteratureMetadata] = field(default_factory=list)
    total: int = 0


class InspireClient(BaseHttpClient):
    """Lightweight wrapper around the INSPIRE literature API."""

    BASE_URL = DEFAULT_INSPIRE_BASE_URL

    def search(
        self,
        query: str,
        *,
        size: int = 25,
        sort: Optional[str] = None,
        page: int = 1,
        fields: Optional[Iterable[str]] = None,
        token: Optional[CancellationToken] = None,
    ) -> LiteratureSearchResult:
        """Run a literature search; a 404 is an empty result, not an error."""

        params = build_search_params(query, size=size, page=page, sort=sort, fields=fields)
        try:
            response = self._request("GET", "/literature", params=params, token=token)
        except NotFoundError:
            return LiteratureSearchResult()

        payload = self._json(response)
        try:
            envelope = LiteratureSearchResponse.model_validate(payload)
        except ValidationError as exc:
            raise MalformedResponseError(f"Unexpected literature search payload: {exc}") from exc

        hits: List[LiteratureMetadata] = []
        for raw_hit in envelope.hits.hits:
            try:
                hits.append(LiteratureHit.model_validate(raw_hit).metadata)
            except ValidationError as exc:
                logger.debug("Skipping malformed INSPIRE hit for query=%s: %s", query, exc)
        return LiteratureSearchResult(hits=hits, total=max(0, envelope.hits.total))

    def count(self, query: str, *, token: Optional[CancellationToken] = None) -> int:
        """Return the total number of records matching ``query``."""

        result = self.search(query, size=1, fields=CONTROL_NUMBER_FIELDS, token=token)
        return result.total

    def get_references(
        self, recid: str, *, token: Optional[CancellationToken] = None
    ) -> List[ReferenceItem]:
        """Return the bibliography of ``recid``; raises :class:`NotFoundError` for unknown records."""

        response = self._request(
            "GET",
            f"/literature/{quote(str(recid), safe='')}",
            params={"fields": "metadata.references"},
            token=token,
        )
        payload = self._json(response)
        try:
            envelope = RecordReferencesResponse.model_validate(payload)
        except ValidationError as exc:
            raise MalformedResponseError(f"Unexpected references payload: {exc}") from exc

        items: List[ReferenceItem] = []
        for raw_item in envelope.metadata.references:
            try:
                items.append(ReferenceItem.model_validate(raw_item))
            except ValidationError as exc:
                logger.debug("Skipping malformed reference of recid=%s: %s", recid, exc)
        return items
