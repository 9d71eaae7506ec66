"""Display helpers for normalized literature records."""

from __future__ import annotations

import html
import re
from typing import List, Optional, Sequence

from .models import PublicationInfo, PublicationNote

LARGE_COLLABORATION_THRESHOLD = 20
MAX_DISPLAY_AUTHORS = 3
UNKNOWN_AUTHOR = "Unknown author"
NO_TITLE = "No title"

_TAG_PATTERN = re.compile(r"<[^>]+>")
_NON_PERSON_AUTHOR_PATTERN = re.compile(
    r"^.*\s+(collaboration|group|team|consortium|project|experiment)$", re.IGNORECASE
)
_FAMILY_NAME_PARTICLES = {
    "de", "du", "da", "di", "del", "della", "van", "von", "le", "la",
    "ter", "ten", "ibn", "bin", "al", "el",
}
_YEAR_PATTERN = re.compile(r"\d{4}")


def clean_title(raw: Optional[str]) -> str:
    """Strip markup (e.g. inline MathML) and collapse whitespace."""

    if not raw:
        return ""
    without_tags = _TAG_PATTERN.sub("", raw)
    return " ".join(html.unescape(without_tags).split())


def _initials(given: str) -> str:
    words = []
    for word in given.replace(".", " ").split():
        segments = [segment for segment in word.split("-") if segment]
        words.append("-".join(f"{segment[0].upper()}." for segment in segments))
    return " ".join(word for word in words if word)


def format_author_name(raw_name: Optional[str]) -> str:
    """Format ``"Last, First"`` or ``"First Last"`` as ``"F. Last"``."""

    if not raw_name or not raw_name.strip():
        return ""
    trimmed = raw_name.strip()
    if _NON_PERSON_AUTHOR_PATTERN.match(trimmed):
        return trimmed

    if "," in trimmed:
        family, given = (part.strip() for part in trimmed.split(",", 1))
    else:
        parts = trimmed.split()
        if len(parts) == 1:
            family, given = parts[0], ""
        else:
            index = len(parts) - 1
            family_parts = [parts[index]]
            index -= 1
            while index >= 0 and parts[index].lower() in _FAMILY_NAME_PARTICLES:
                family_parts.insert(0, parts[index])
                index -= 1
            family = " ".join(family_parts)
            given = " ".join(parts[: len(parts) - len(family_parts)])

    if not given:
        return family or trimmed
    initials = _initials(given)
    if not initials:
        return f"{given} {family}".strip()
    return f"{initials} {family}".strip()


def format_authors(authors: Sequence[str], total_authors: Optional[int] = None) -> str:
    if not authors:
        return UNKNOWN_AUTHOR
    has_others = any(name.lower() == "others" for name in authors)
    formatted = [
        format_author_name(name) for name in authors if name.lower() != "others"
    ]
    formatted = [name for name in formatted if name]
    if not formatted:
        return UNKNOWN_AUTHOR

    actual_total = total_authors if total_authors is not None else len(authors)
    if actual_total > LARGE_COLLABORATION_THRESHOLD:
        return f"{formatted[0]} et al."
    if len(formatted) > MAX_DISPLAY_AUTHORS or actual_total > len(formatted) or has_others:
        return f"{', '.join(formatted[:MAX_DISPLAY_AUTHORS])} et al."
    return ", ".join(formatted)


def format_publication_info(
    info: Optional[PublicationInfo],
    fallback_year: Optional[int] = None,
    *,
    omit_journal: bool = False,
) -> str:
    """Render ``Journal Volume (Year) artid-or-pages``."""

    if info is None:
        return ""
    parts: List[str] = []
    journal = "" if omit_journal else (info.journal_title or info.journal_title_abbrev or "")
    if journal:
        parts.append(journal)
    if info.journal_volume:
        parts.append(info.journal_volume)

    year = info.year if info.year is not None else fallback_year
    if year is not None:
        parts.append(f"({year})")

    if info.artid:
        parts.append(info.artid)
    elif info.page_start:
        if info.page_end and info.page_end != info.page_start:
            parts.append(f"{info.page_start}-{info.page_end}")
        else:
            parts.append(info.page_start)
    return " ".join(parts).strip()


def build_publication_summary(
    info: Optional[PublicationInfo],
    arxiv_id: Optional[str] = None,
    fallback_year: Optional[int] = None,
    errata: Sequence[PublicationNote] = (),
) -> str:
    main = format_publication_info(info, fallback_year)
    arxiv_tag = f"[arXiv:{arxiv_id}]" if arxiv_id else ""
    base = " ".join(part for part in (main, arxiv_tag) if part)

    notes = []
    for note in errata:
        text = format_publication_info(note.info, fallback_year, omit_journal=True)
        if text:
            notes.append(f"{note.label}: {text}")
    if notes:
        errata_text = f"[{'; '.join(notes)}]"
        return f"{base} {errata_text}" if base else errata_text
    return base


def parse_year(value: Optional[str]) -> Optional[int]:
    """Return the first four-digit year in ``value``."""

    if not value:
        return None
    match = _YEAR_PATTERN.search(str(value))
    return int(match.group(0)) if match else None
