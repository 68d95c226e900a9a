"""Tests for the citation formatters."""
from datetime import datetime

import pytest

from paperforum.services.citations import (
    DEFAULT_JOURNAL,
    CitationData,
    format_authors_apa,
    format_authors_chicago,
    format_authors_mla,
    format_citation,
    generate_cite_key,
)


@pytest.fixture
def full_paper() -> CitationData:
    return CitationData(
        title="Attention Is All You Need",
        authors=["Ashish Vaswani", "Noam Shazeer", "Niki Parmar"],
        year=2017,
        journal="NeurIPS",
        volume="30",
        issue="1",
        pages="5998-6008",
        doi="10.5555/3295222",
    )


def test_author_lists():
    assert format_authors_apa([]) == "Unknown Author"
    assert format_authors_apa(["A"]) == "A"
    assert format_authors_apa(["A", "B"]) == "A & B"
    assert format_authors_apa(["A", "B", "C"]) == "A, B, & C"
    assert format_authors_mla(["A", "B"]) == "A, and B"
    assert format_authors_chicago(["A", "B"]) == "A and B"
    assert format_authors_chicago(["A", "B", "C"]) == "A, B, and C"


def test_apa(full_paper):
    assert format_citation(full_paper, "apa") == (
        "Ashish Vaswani, Noam Shazeer, & Niki Parmar (2017). Attention Is All You Need. "
        "NeurIPS, 30(1), 5998-6008. https://doi.org/10.5555/3295222."
    )


def test_mla(full_paper):
    assert format_citation(full_paper, "mla") == (
        'Ashish Vaswani, Noam Shazeer, and Niki Parmar. "Attention Is All You Need". '
        "NeurIPS, vol. 30, no. 1, pp. 5998-6008, 2017, doi:10.5555/3295222."
    )


def test_chicago(full_paper):
    assert format_citation(full_paper, "chicago") == (
        'Ashish Vaswani, Noam Shazeer, and Niki Parmar. "Attention Is All You Need". '
        "NeurIPS 30, no. 1 (5998-6008) (2017). https://doi.org/10.5555/3295222."
    )


def test_bibtex(full_paper):
    assert format_citation(full_paper, "bibtex") == (
        "@article{vaswani2017attention,\n"
        "  author = {Ashish Vaswani and Noam Shazeer and Niki Parmar},\n"
        "  title = {Attention Is All You Need},\n"
        "  journal = {NeurIPS},\n"
        "  year = {2017},\n"
        "  volume = {30},\n"
        "  number = {1},\n"
        "  pages = {5998-6008},\n"
        "  doi = {10.5555/3295222}\n"
        "}"
    )


def test_endnote(full_paper):
    assert format_citation(full_paper, "endnote") == (
        "%0 Journal Article\n"
        "%A Ashish Vaswani\n"
        "%A Noam Shazeer\n"
        "%A Niki Parmar\n"
        "%T Attention Is All You Need\n"
        "%J NeurIPS\n"
        "%D 2017\n"
        "%V 30\n"
        "%N 1\n"
        "%P 5998-6008\n"
        "%R 10.5555/3295222\n"
    )


def test_minimal_data_uses_defaults():
    data = CitationData(title="Untitled Notes", published_at=datetime(2021, 6, 1))
    assert format_citation(data, "apa") == f"Unknown Author (2021). Untitled Notes. {DEFAULT_JOURNAL}."
    assert generate_cite_key(data) == "unknown2021untitled"


def test_url_used_without_doi():
    data = CitationData(title="T", authors=["A B"], year=2020, url="https://example.org/t")
    assert format_citation(data, "apa").endswith(". https://example.org/t.")


def test_format_is_case_insensitive_and_falls_back_to_apa(full_paper):
    assert format_citation(full_paper, "BibTeX").startswith("@article{")
    assert format_citation(full_paper, "harvard") == format_citation(full_paper, "apa")
    assert format_citation(full_paper, None) == format_citation(full_paper, "apa")
