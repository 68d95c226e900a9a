"""
Citation text for papers in APA, MLA, Chicago, BibTeX and EndNote styles.

Every formatter is a pure function of a ``CitationData`` value.  Missing
fields are skipped; the year falls back to the publication date and then the
current year, the journal to ``DEFAULT_JOURNAL``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from paperforum.utils.helpers import utcnow

DEFAULT_JOURNAL = "Research Platform"
UNKNOWN_AUTHOR = "Unknown Author"


@dataclass
class CitationData:
    title: str
    authors: List[str] = field(default_factory=list)
    year: Optional[int] = None
    journal: Optional[str] = None
    volume: Optional[str] = None
    issue: Optional[str] = None
    pages: Optional[str] = None
    doi: Optional[str] = None
    url: Optional[str] = None
    published_at: Optional[datetime] = None

    def resolved_year(self) -> int:
        if self.year:
            return self.year
        if self.published_at:
            return self.published_at.year
        return utcnow().year

    def resolved_journal(self) -> str:
        return self.journal or DEFAULT_JOURNAL


def _join_authors(authors: List[str], pair_sep: str, final_sep: str) -> str:
    if not authors:
        return UNKNOWN_AUTHOR
    if len(authors) == 1:
        return authors[0]
    if len(authors) == 2:
        return f"{authors[0]}{pair_sep}{authors[1]}"
    return f"{', '.join(authors[:-1])}{final_sep}{authors[-1]}"


def format_authors_apa(authors: List[str]) -> str:
    return _join_authors(authors, " & ", ", & ")


def format_authors_mla(authors: List[str]) -> str:
    return _join_authors(authors, ", and ", ", and ")


def format_authors_chicago(authors: List[str]) -> str:
    return _join_authors(authors, " and ", ", and ")


def generate_apa(data: CitationData) -> str:
    citation = (
        f"{format_authors_apa(data.authors)} ({data.resolved_year()}). "
        f"{data.title}. {data.resolved_journal()}"
    )
    if data.volume:
        citation += f", {data.volume}"
    if data.issue:
        citation += f"({data.issue})"
    if data.pages:
        citation += f", {data.pages}"
    if data.doi:
        citation += f". https://doi.org/{data.doi}"
    elif data.url:
        citation += f". {data.url}"
    return citation + "."


def generate_mla(data: CitationData) -> str:
    citation = f'{format_authors_mla(data.authors)}. "{data.title}". {data.resolved_journal()}'
    if data.volume:
        citation += f", vol. {data.volume}"
    if data.issue:
        citation += f", no. {data.issue}"
    if data.pages:
        citation += f", pp. {data.pages}"
    citation += f", {data.resolved_year()}"
    if data.doi:
        citation += f", doi:{data.doi}"
    elif data.url:
        citation += f", {data.url}"
    return citation + "."


def generate_chicago(data: CitationData) -> str:
    citation = f'{format_authors_chicago(data.authors)}. "{data.title}". {data.resolved_journal()}'
    if data.volume:
        citation += f" {data.volume}"
    if data.issue:
        citation += f", no. {data.issue}"
    if data.pages:
        citation += f" ({data.pages})"
    citation += f" ({data.resolved_year()})"
    if data.doi:
        citation += f". https://doi.org/{data.doi}"
    elif data.url:
        citation += f". {data.url}"
    return citation + "."


def generate_cite_key(data: CitationData) -> str:
    """``<first author surname><year><first title word>``, lowercased."""
    first_author = "unknown"
    if data.authors and data.authors[0].split():
        first_author = data.authors[0].split()[-1].lower()
    title_words = data.title.split()
    title_word = title_words[0].lower() if title_words else "paper"
    return f"{first_author}{data.resolved_year()}{title_word}"


def generate_bibtex(data: CitationData) -> str:
    lines = [
        f"@article{{{generate_cite_key(data)},",
        f"  author = {{{' and '.join(data.authors)}}},",
        f"  title = {{{data.title}}},",
        f"  journal = {{{data.resolved_journal()}}},",
        f"  year = {{{data.resolved_year()}}}",
    ]
    bibtex = "\n".join(lines)
    optional = (
        ("volume", data.volume),
        ("number", data.issue),
        ("pages", data.pages),
        ("doi", data.doi),
        ("url", data.url),
    )
    for name, value in optional:
        if value:
            bibtex += f",\n  {name} = {{{value}}}"
    return bibtex + "\n}"


def generate_endnote(data: CitationData) -> str:
    lines = ["%0 Journal Article"]
    lines.extend(f"%A {author}" for author in data.authors)
    lines.append(f"%T {data.title}")
    lines.append(f"%J {data.resolved_journal()}")
    lines.append(f"%D {data.resolved_year()}")
    optional = (
        ("%V", data.volume),
        ("%N", data.issue),
        ("%P", data.pages),
        ("%R", data.doi),
        ("%U", data.url),
    )
    lines.extend(f"{tag} {value}" for tag, value in optional if value)
    return "\n".join(lines) + "\n"


FORMATTERS: Dict[str, Callable[[CitationData], str]] = {
    "apa": generate_apa,
    "mla": generate_mla,
    "chicago": generate_chicago,
    "bibtex": generate_bibtex,
    "endnote": generate_endnote,
}


def format_citation(data: CitationData, fmt: Optional[str] = "apa") -> str:
    """Render *data* in *fmt*; unknown formats fall back to APA."""
    formatter = FORMATTERS.get((fmt or "apa").lower(), generate_apa)
    return formatter(data)
