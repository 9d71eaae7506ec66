"""HTTP clients used by the related-papers service layer."""

from .base import (
    BaseHttpClient,
    ClientError,
    MalformedResponseError,
    NotFoundError,
    RateLimitedError,
    UpstreamError,
)
from .inspire import InspireClient, LiteratureSearchResult, citing_query, co_citing_query

__all__ = [
    "BaseHttpClient",
    "ClientError",
    "InspireClient",
    "LiteratureSearchResult",
    "MalformedResponseError",
    "NotFoundError",
    "RateLimitedError",
    "UpstreamError",
    "citing_query",
    "co_citing_query",
]
