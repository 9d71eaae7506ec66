"""Pydantic models for the parts of INSPIRE literature payloads we consume.

Every field is optional with an explicit default so partially populated
records validate; payloads whose overall shape is wrong fail validation and
are treated by callers as "no hits".
"""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TitleRecord(_Lenient):
    title: Optional[str] = None
    subtitle: Optional[str] = None


class AuthorRecord(_Lenient):
    full_name: Optional[str] = None
    full_name_unicode_normalized: Optional[str] = None
    inspire_roles: List[str] = Field(default_factory=list)

    @property
    def name(self) -> Optional[str]:
        return self.full_name or self.full_name_unicode_normalized


class PublicationInfoRecord(_Lenient):
    journal_title: Optional[str] = None
    journal_title_abbrev: Optional[str] = None
    journal_volume: Optional[str] = None
    journal_issue: Optional[str] = None
    year: Optional[int] = None
    artid: Optional[str] = None
    page_start: Optional[str] = None
    page_end: Optional[str] = None
    material: Optional[str] = None
    pubinfo_freetext: Optional[str] = None

    @field_validator("journal_volume", "journal_issue", "artid", "page_start", "page_end", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class ArxivEprintRecord(_Lenient):
    value: Optional[str] = None
    categories: List[str] = Field(default_factory=list)


class DoiRecord(_Lenient):
    value: Optional[str] = None


class LiteratureMetadata(_Lenient):
    """Subset of an INSPIRE literature record used by the engine."""

    control_number: Optional[Union[int, str]] = None
    titles: List[TitleRecord] = Field(default_factory=list)
    authors: List[AuthorRecord] = Field(default_factory=list)
    author_count: Optional[int] = None
    publication_info: List[PublicationInfoRecord] = Field(default_factory=list)
    arxiv_eprints: List[ArxivEprintRecord] = Field(default_factory=list)
    dois: List[Union[DoiRecord, str]] = Field(default_factory=list)
    citation_count: Optional[int] = None
    citation_count_without_self_citations: Optional[int] = None
    document_type: List[str] = Field(default_factory=list)
    earliest_date: Optional[str] = None

    @property
    def recid(self) -> Optional[str]:
        if self.control_number is None:
            return None
        text = str(self.control_number).strip()
        return text or None

    @property
    def title(self) -> Optional[str]:
        for record in self.titles:
            if record.title:
                return record.title
        return None


class LiteratureHit(_Lenient):
    metadata: LiteratureMetadata = Field(default_factory=LiteratureMetadata)


class SearchHits(_Lenient):
    total: int = 0
    hits: List[Any] = Field(default_factory=list)


class LiteratureSearchResponse(_Lenient):
    """Top-level search envelope; individual hits are validated separately."""

    hits: SearchHits


class RecordRef(_Lenient):
    ref: Optional[str] = Field(default=None, alias="$ref")


class ReferenceTitle(_Lenient):
    title: Optional[str] = None


class ReferenceUrl(_Lenient):
    value: Optional[str] = None


class ReferencePublicationInfo(PublicationInfoRecord):
    date: Optional[str] = None


class ReferenceBody(_Lenient):
    label: Optional[str] = None
    title: Optional[ReferenceTitle] = None
    authors: List[AuthorRecord] = Field(default_factory=list)
    publication_info: Optional[ReferencePublicationInfo] = None
    arxiv_eprint: Optional[str] = None
    dois: List[str] = Field(default_factory=list)
    urls: List[ReferenceUrl] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _wrap_plain_title(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"title": value}
        return value

    @field_validator("label", mode="before")
    @classmethod
    def _label_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class ReferenceItem(_Lenient):
    """One bibliography item of a literature record."""

    record: Optional[RecordRef] = None
    reference: ReferenceBody = Field(default_factory=ReferenceBody)


class ReferencesMetadata(_Lenient):
    references: List[Any] = Field(default_factory=list)


class RecordReferencesResponse(_Lenient):
    metadata: ReferencesMetadata = Field(default_factory=ReferencesMetadata)


__all__ = [
    "ArxivEprintRecord",
    "AuthorRecord",
    "DoiRecord",
    "LiteratureHit",
    "LiteratureMetadata",
    "LiteratureSearchResponse",
    "PublicationInfoRecord",
    "RecordReferencesResponse",
    "ReferenceBody",
    "ReferenceItem",
    "ReferencePublicationInfo",
    "SearchHits",
]
