"""Heuristics flagging survey/overview records.

Review articles are cited for breadth rather than topical closeness, so they
make poor coupling anchors and poor recommendations. The Particle Data
Group's "Review of Particle Physics" is cited by nearly every HEP paper and
is always dropped, whatever the review setting.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Union

from ..core.identifiers import normalize_journal_key
from ..core.models import PublicationInfo, ReferenceEntry
from ..providers.schema import LiteratureMetadata, PublicationInfoRecord

_GENERIC_REVIEW_TITLE_PATTERN = re.compile(r"\breview of particle physics\b", re.IGNORECASE)
_REVIEW_DOC_TYPE_PATTERN = re.compile(r"\breview\b", re.IGNORECASE)

REVIEW_JOURNAL_KEY_SUBSTRINGS = (
    # Rev. Mod. Phys.
    "rmp",
    "revmodphys",
    "reviewsofmodernphysics",
    # Phys. Rept.
    "physrep",
    "physrept",
    "physicsreports",
    # Prog. Part. Nucl. Phys.
    "ppnp",
    "progpartnuclphys",
    "progressinparticleandnuclearphysics",
    # Rep. Prog. Phys.
    "rpp",
    "repprogphys",
    "reptprogphys",
    "reportsonprogressinphysics",
)
ANNUAL_REVIEW_KEY_PREFIXES = ("annualreview", "annurev", "annrev")

_PublicationBlock = Union[PublicationInfo, PublicationInfoRecord]


def is_generic_review_title(title: Optional[str]) -> bool:
    if not isinstance(title, str):
        return False
    return bool(_GENERIC_REVIEW_TITLE_PATTERN.search(title))


def is_review_document_type(document_type: Optional[Iterable[str]]) -> bool:
    if not document_type:
        return False
    return any(isinstance(tag, str) and _REVIEW_DOC_TYPE_PATTERN.search(tag) for tag in document_type)


def is_review_journal(publication_info: Iterable[Optional[_PublicationBlock]]) -> bool:
    for info in publication_info:
        if info is None:
            continue
        for name in (info.journal_title, info.journal_title_abbrev):
            key = normalize_journal_key(name)
            if not key:
                continue
            if key.startswith(ANNUAL_REVIEW_KEY_PREFIXES):
                return True
            if any(fragment in key for fragment in REVIEW_JOURNAL_KEY_SUBSTRINGS):
                return True
    return False


def is_review_like(record: Union[ReferenceEntry, LiteratureMetadata]) -> bool:
    """Return True for review document types, review venues, or the generic PDG review."""

    if isinstance(record, LiteratureMetadata):
        blocks: List[Optional[_PublicationBlock]] = list(record.publication_info)
        title = record.title
    else:
        blocks = [record.publication_info]
        blocks.extend(note.info for note in record.publication_info_errata)
        title = record.title
    return (
        is_review_document_type(record.document_type)
        or is_review_journal(blocks)
        or is_generic_review_title(title)
    )
