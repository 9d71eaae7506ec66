"""High-level related-papers API over INSPIRE-HEP.

This module exposes the :class:`RelatedPapersClient` facade and the
functional helpers defined in :mod:`related_papers.__init__`. A request
starts from a seed record: its bibliography provides the anchors, papers
citing those anchors become candidates, and the best candidates are
re-ranked by how often they are cited together with the seed.

Example: related papers for a record
------------------------------------
```python
from related_papers.api import RelatedPapersClient

client = RelatedPapersClient()
for entry in client.fetch_related_for_recid("1234567", max_results=10):
    print(entry.combined_score, entry.title, entry.shared_ref_titles)
```
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

import requests

from .config import RelatedPapersConfig
from .core.cancellation import CancellationToken
from .core.models import (
    Anchor,
    LibraryView,
    ReferenceEntry,
    RelatedPapersParams,
    RelatedPapersProgress,
)
from .core.settings import RelatedPapersSettings
from .providers.clients.inspire import InspireClient
from .services.anchor_service import select_anchors
from .services.coupling_service import ProgressCallback
from .services.related_papers_service import RelatedPapersService
from .services.seed_reference_service import SeedReferenceService


class RelatedPapersClient:
    """Facade around seed loading and the related-papers pipeline.

    ``settings`` controls the HTTP layer; ``config`` carries the algorithm
    defaults. Per-call keyword overrides win over ``config``.
    """

    def __init__(
        self,
        settings: Optional[RelatedPapersSettings] = None,
        *,
        config: Optional[RelatedPapersConfig] = None,
        session: Optional[requests.Session] = None,
        inspire_client: Optional[InspireClient] = None,
    ) -> None:
        self.settings = settings or RelatedPapersSettings()
        self.config = config or RelatedPapersConfig()
        client_session = self.settings.build_session() if session is None else session
        if session is not None and self.settings.user_agent:
            session.headers.setdefault("User-Agent", self.settings.user_agent)
        self.session = client_session

        self._inspire_client = inspire_client or InspireClient(
            session=self.session,
            base_url=self.settings.inspire_base_url,
            timeout=self.settings.timeout,
            debug_logging=self.settings.debug_logging,
        )
        self._related_service = RelatedPapersService(
            self._inspire_client,
            anchor_policy=self.config.anchor_policy(),
            cocitation_model=self.config.cocitation_model(),
        )
        self._seed_service = SeedReferenceService(self._inspire_client)

    def params(self, **overrides) -> RelatedPapersParams:
        """Resolve request parameters from config defaults and keyword overrides."""

        return RelatedPapersParams.normalized(self.config.to_params(), **overrides)

    def load_seed_references(
        self, seed_recid: str, *, token: Optional[CancellationToken] = None
    ) -> List[ReferenceEntry]:
        """Fetch the bibliography of ``seed_recid`` with citation counts filled in."""

        return self._seed_service.load(seed_recid, token=token)

    def select_anchors(
        self,
        seed_references: Sequence[ReferenceEntry],
        max_anchors: Optional[int] = None,
        *,
        exclude_review_articles: Optional[bool] = None,
    ) -> List[Anchor]:
        overrides = {}
        if max_anchors is not None:
            overrides["max_anchors"] = max_anchors
        if exclude_review_articles is not None:
            overrides["exclude_review_articles"] = exclude_review_articles
        params = self.params(**overrides)
        if max_anchors is not None and max_anchors <= 0:
            return []
        return select_anchors(
            seed_references,
            params.max_anchors,
            exclude_review_articles=params.exclude_review_articles,
            policy=self._related_service.anchor_policy,
        )

    def fetch_related(
        self,
        seed_recid: str,
        seed_references: Sequence[ReferenceEntry],
        *,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
        library: Optional[LibraryView] = None,
        **overrides,
    ) -> List[ReferenceEntry]:
        """Rank papers related to ``seed_recid`` given its already-loaded references.

        Keyword overrides are any :class:`RelatedPapersParams` field. Raises
        :class:`RelatedPapersCancelled` once ``token`` is cancelled.
        """

        return self._related_service.fetch_related(
            seed_recid,
            seed_references,
            params=self.params(**overrides),
            token=token,
            on_progress=on_progress,
            library=library,
        )

    def fetch_related_for_recid(
        self,
        seed_recid: str,
        *,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
        library: Optional[LibraryView] = None,
        **overrides,
    ) -> List[ReferenceEntry]:
        """Load the seed's references from INSPIRE, then rank related papers."""

        references = self.load_seed_references(seed_recid, token=token)
        return self.fetch_related(
            seed_recid,
            references,
            token=token,
            on_progress=on_progress,
            library=library,
            **overrides,
        )

    def stream_related(
        self,
        seed_recid: str,
        seed_references: Sequence[ReferenceEntry],
        *,
        token: Optional[CancellationToken] = None,
        library: Optional[LibraryView] = None,
        **overrides,
    ) -> Iterator[RelatedPapersProgress]:
        return self._related_service.stream_related(
            seed_recid,
            seed_references,
            params=self.params(**overrides),
            token=token,
            library=library,
        )
