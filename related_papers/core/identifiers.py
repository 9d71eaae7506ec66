from __future__ import annotations

import re
from typing import Iterable, Optional

_DOI_PREFIX_PATTERN = re.compile(r"^(https?://)?(dx\.)?doi\.org/", re.IGNORECASE)
_ARXIV_PREFIX_PATTERN = re.compile(r"^arxiv\s*:", re.IGNORECASE)
_RECORD_REF_PATTERN = re.compile(r"/(\d+)(?:\?.*)?$")
_RECORD_URL_PATTERN = re.compile(r"(?:literature|record)/(\d+)")
_NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9]+")


def normalize_doi(doi: str | None) -> str | None:
    """Normalize a DOI string into a canonical lowercase form.

    The normalization removes leading DOI prefixes (e.g., ``https://doi.org/`` or
    ``doi:``), trims whitespace, and lowercases the remaining identifier. Empty
    or missing values return ``None``.
    """

    if not doi:
        return None

    cleaned = doi.strip()
    cleaned = _DOI_PREFIX_PATTERN.sub("", cleaned)
    if cleaned.lower().startswith("doi:"):
        cleaned = cleaned.split(":", 1)[1]
    cleaned = cleaned.strip().lower()

    return cleaned or None


def normalize_arxiv_id(raw: str | None) -> str | None:
    """Strip an ``arXiv:`` prefix and surrounding whitespace."""

    if not raw:
        return None
    cleaned = _ARXIV_PREFIX_PATTERN.sub("", raw.strip()).strip()
    return cleaned or None


def extract_recid_from_ref(ref: str | None) -> str | None:
    """Return the record id from an INSPIRE ``$ref`` API link."""

    if not ref:
        return None
    match = _RECORD_REF_PATTERN.search(ref)
    return match.group(1) if match else None


def extract_recid_from_urls(urls: Iterable[Optional[str]]) -> str | None:
    for url in urls:
        if not url:
            continue
        match = _RECORD_URL_PATTERN.search(url)
        if match:
            return match.group(1)
    return None


def normalize_journal_key(value: str | None) -> str:
    """Lowercase a journal name and drop everything that is not a letter or digit."""

    if not value:
        return ""
    return _NON_ALNUM_PATTERN.sub("", value.lower())

