"""
arXiv search through the ``arxiv`` client library.

The library is synchronous and paces its own requests, so searches run in
a worker thread.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

import arxiv

from paperforum.utils.helpers import normalize_text

logger = logging.getLogger(__name__)


@dataclass
class ArxivArticle:
    id: str
    title: str
    abstract: str
    authors: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    submitted: str = ""
    doi: Optional[str] = None
    pdf_url: Optional[str] = None


def normalize_arxiv_id(entry_id: str) -> str:
    """``http://arxiv.org/abs/2401.01234v2`` -> ``2401.01234``."""
    last = entry_id.rstrip("/").split("/")[-1]
    return re.sub(r"v\d+$", "", last)


def _pdf_url(result: arxiv.Result) -> Optional[str]:
    if getattr(result, "pdf_url", None):
        return result.pdf_url
    for link in result.links or []:
        if "pdf" in link.href.lower():
            return link.href
    return None


def result_to_article(result: arxiv.Result) -> ArxivArticle:
    categories = list(result.categories or [])
    if result.primary_category and result.primary_category not in categories:
        categories.insert(0, result.primary_category)
    return ArxivArticle(
        id=normalize_arxiv_id(result.entry_id),
        title=normalize_text(result.title),
        abstract=normalize_text(result.summary),
        authors=[author.name for author in result.authors],
        categories=categories,
        submitted=result.published.date().isoformat() if result.published else "",
        doi=result.doi or None,
        pdf_url=_pdf_url(result),
    )


class ArxivFetcher:
    def __init__(self, client: Optional[arxiv.Client] = None) -> None:
        self.client = client or arxiv.Client(
            page_size=100,
            delay_seconds=1,
            num_retries=3,
        )

    def search_sync(self, query: str, max_results: int = 25) -> List[ArxivArticle]:
        search = arxiv.Search(
            query=query,
            max_results=max_results,
            sort_by=arxiv.SortCriterion.Relevance,
            sort_order=arxiv.SortOrder.Descending,
        )
        articles = []
        for result in self.client.results(search):
            article = result_to_article(result)
            if article.abstract:
                articles.append(article)
        return articles

    async def fetch(self, query: str, max_results: int = 25) -> List[ArxivArticle]:
        try:
            articles = await asyncio.to_thread(self.search_sync, query, max_results)
        except arxiv.ArxivError as exc:
            logger.error("arXiv search failed for %r: %s", query, exc)
            return []
        logger.info("arXiv search %r returned %d articles", query, len(articles))
        return articles
