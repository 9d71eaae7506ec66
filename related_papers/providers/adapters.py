from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from ..core.formatters import (
    LARGE_COLLABORATION_THRESHOLD,
    MAX_DISPLAY_AUTHORS,
    NO_TITLE,
    build_publication_summary,
    clean_title,
    format_authors,
    parse_year,
)
from ..core.identifiers import (
    extract_recid_from_ref,
    extract_recid_from_urls,
    normalize_arxiv_id,
    normalize_doi,
)
from ..core.models import PublicationInfo, PublicationNote, ReferenceEntry
from .clients.inspire import INSPIRE_LITERATURE_URL
from .schema import AuthorRecord, DoiRecord, LiteratureMetadata, PublicationInfoRecord, ReferenceItem

ARXIV_ABS_URL = "https://arxiv.org/abs"
DOI_ORG_URL = "https://doi.org"

_NOTE_LABELS = (
    (re.compile(r"erratum", re.IGNORECASE), "Erratum"),
    (re.compile(r"addendum", re.IGNORECASE), "Addendum"),
)


def _to_publication_info(record: PublicationInfoRecord) -> PublicationInfo:
    return PublicationInfo(
        journal_title=record.journal_title,
        journal_title_abbrev=record.journal_title_abbrev,
        journal_volume=record.journal_volume,
        journal_issue=record.journal_issue,
        year=record.year,
        artid=record.artid,
        page_start=record.page_start,
        page_end=record.page_end,
        material=record.material,
    )


def _note_label(record: PublicationInfoRecord) -> Optional[str]:
    for value in (record.material, record.pubinfo_freetext):
        if not value:
            continue
        for pattern, label in _NOTE_LABELS:
            if pattern.search(value):
                return label
    return None


def split_publication_info(
    records: Iterable[PublicationInfoRecord],
) -> Tuple[Optional[PublicationInfo], List[PublicationNote]]:
    """Pick the primary publication block and collect labelled errata/addenda."""

    items = list(records)
    if not items:
        return None, []
    primary = next((record for record in items if not _note_label(record)), items[0])
    notes: List[PublicationNote] = []
    for record in items:
        if record is primary:
            continue
        label = _note_label(record)
        if label:
            notes.append(PublicationNote(label=label, info=_to_publication_info(record)))
    return _to_publication_info(primary), notes


def _limited_author_names(authors: List[AuthorRecord], limit: int) -> Tuple[List[str], int]:
    total = len(authors)
    effective_limit = 1 if total > LARGE_COLLABORATION_THRESHOLD else limit
    names = [author.name for author in authors[:effective_limit] if author.name]
    return names, total


def _first_doi(dois: Iterable[object]) -> Optional[str]:
    for doi in dois:
        value = doi.value if isinstance(doi, DoiRecord) else doi
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _fallback_url(doi: Optional[str], arxiv_id: Optional[str]) -> Optional[str]:
    if doi:
        return f"{DOI_ORG_URL}/{doi}"
    if arxiv_id:
        return f"{ARXIV_ABS_URL}/{arxiv_id}"
    return None


def literature_metadata_to_entry(
    metadata: LiteratureMetadata, *, entry_id: Optional[str] = None
) -> ReferenceEntry:
    """Normalize a literature search hit."""

    recid = metadata.recid
    title = clean_title(metadata.title) or NO_TITLE
    primary, errata = split_publication_info(metadata.publication_info)
    year = parse_year(metadata.earliest_date)
    if year is None and primary is not None:
        year = primary.year

    eprint = next((eprint for eprint in metadata.arxiv_eprints if eprint.value), None)
    arxiv_id = normalize_arxiv_id(eprint.value) if eprint else None
    authors, total_authors = _limited_author_names(metadata.authors, MAX_DISPLAY_AUTHORS)
    if metadata.author_count and metadata.author_count > total_authors:
        total_authors = metadata.author_count
    doi = _first_doi(metadata.dois)

    return ReferenceEntry(
        id=entry_id or f"related-{recid or 'unknown'}",
        recid=recid,
        title=title,
        authors=authors,
        total_authors=total_authors,
        author_text=format_authors(authors, total_authors),
        year=year,
        citation_count=metadata.citation_count,
        citation_count_without_self=metadata.citation_count_without_self_citations,
        document_type=list(metadata.document_type),
        publication_info=primary,
        publication_info_errata=errata,
        summary=build_publication_summary(primary, arxiv_id, year, errata),
        doi=doi,
        arxiv_id=arxiv_id,
        arxiv_categories=list(eprint.categories) if eprint else [],
        inspire_url=f"{INSPIRE_LITERATURE_URL}/{recid}" if recid else None,
        fallback_url=_fallback_url(doi, arxiv_id),
    )


def reference_item_to_entry(item: ReferenceItem, index: int) -> ReferenceEntry:
    """Normalize one bibliography item of a seed record."""

    reference = item.reference
    recid = extract_recid_from_ref(item.record.ref if item.record else None) or extract_recid_from_urls(
        url.value for url in reference.urls
    )
    pub = reference.publication_info
    year = None
    if pub is not None:
        year = pub.year if pub.year is not None else parse_year(pub.date)
    primary, errata = split_publication_info([pub] if pub is not None else [])
    arxiv_id = normalize_arxiv_id(reference.arxiv_eprint)
    authors, total_authors = _limited_author_names(reference.authors, MAX_DISPLAY_AUTHORS)
    doi = _first_doi(reference.dois)
    title = clean_title(reference.title.title if reference.title else None)

    return ReferenceEntry(
        id=f"{index}-{recid or reference.label or index}",
        label=reference.label,
        recid=recid,
        title=title or NO_TITLE,
        authors=authors,
        total_authors=total_authors,
        author_text=format_authors(authors, total_authors),
        year=year,
        publication_info=primary,
        publication_info_errata=errata,
        summary=build_publication_summary(primary, arxiv_id, year, errata),
        doi=normalize_doi(doi) if doi else None,
        arxiv_id=arxiv_id,
        inspire_url=f"{INSPIRE_LITERATURE_URL}/{recid}" if recid else None,
        fallback_url=_fallback_url(doi, arxiv_id),
    )


def apply_enrichment(entry: ReferenceEntry, metadata: LiteratureMetadata) -> None:
    """Copy citation counts, document type and venue from a full record onto ``entry``."""

    entry.citation_count = metadata.citation_count
    entry.citation_count_without_self = metadata.citation_count_without_self_citations
    if metadata.document_type:
        entry.document_type = list(metadata.document_type)
    if metadata.publication_info and entry.publication_info is None:
        entry.publication_info, entry.publication_info_errata = split_publication_info(
            metadata.publication_info
        )
