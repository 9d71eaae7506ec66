"""Shared test doubles for the INSPIRE client."""

import threading

from related_papers.core.cancellation import raise_if_cancelled
from related_papers.providers.clients.base import NotFoundError, UpstreamError
from related_papers.providers.clients.inspire import LiteratureSearchResult
from related_papers.providers.schema import LiteratureMetadata, ReferenceItem


def literature(recid, title=None, citations=None, **extra):
    """Raw INSPIRE metadata dict for a literature hit."""

    metadata = {"control_number": recid, "titles": [{"title": title or f"Paper {recid}"}]}
    if citations is not None:
        metadata["citation_count"] = citations
    metadata.update(extra)
    return metadata


class StubInspireClient:
    """In-memory stand-in for :class:`InspireClient`.

    ``citing`` maps a recid to the raw hits returned for ``refersto:recid:<recid>``;
    ``counts`` maps a full query to the value returned by :meth:`count`.
    """

    def __init__(
        self,
        *,
        citing=None,
        counts=None,
        records=None,
        references=None,
        failing=(),
        on_search=None,
    ):
        self.citing = citing or {}
        self.counts = counts or {}
        self.records = records or {}
        self.references = references or {}
        self.failing = set(failing)
        self.on_search = on_search
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, kind, query):
        with self._lock:
            self.calls.append((kind, query))

    def search(self, query, *, size=25, sort=None, page=1, fields=None, token=None):
        raise_if_cancelled(token)
        self._record("search", query)
        if self.on_search is not None:
            self.on_search(query)
        if query in self.failing:
            raise UpstreamError(f"stub failure for {query}")
        if query.startswith("refersto:recid:"):
            raw = self.citing.get(query[len("refersto:recid:"):], [])
        else:
            recids = [part.strip()[len("recid:"):] for part in query.split(" OR ")]
            raw = [self.records[recid] for recid in recids if recid in self.records]
        hits = [LiteratureMetadata.model_validate(item) for item in raw]
        return LiteratureSearchResult(hits=hits[:size], total=len(hits))

    def count(self, query, *, token=None):
        raise_if_cancelled(token)
        self._record("count", query)
        if query in self.failing:
            raise UpstreamError(f"stub failure for {query}")
        return self.counts.get(query, 0)

    def get_references(self, recid, *, token=None):
        raise_if_cancelled(token)
        self._record("references", recid)
        if recid not in self.references:
            raise NotFoundError("Resource not found")
        return [ReferenceItem.model_validate(item) for item in self.references[recid]]

    def queries(self, kind):
        with self._lock:
            return [query for call_kind, query in self.calls if call_kind == kind]
