"""
PubMed E-utilities client.

``esearch`` returns the PMIDs for a query, ``esummary`` the article metadata
and ``efetch`` the XML records the abstracts are read from.  Articles
without an abstract are dropped.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx
from bs4 import BeautifulSoup

from paperforum.config import settings
from paperforum.utils.helpers import extract_keywords, normalize_text

logger = logging.getLogger(__name__)


@dataclass
class PubMedArticle:
    pmid: str
    title: str
    abstract: str
    authors: List[str] = field(default_factory=list)
    journal: str = "Unknown journal"
    pub_date: str = ""
    doi: Optional[str] = None
    keywords: List[str] = field(default_factory=list)


def _doi_from_summary(summary: dict) -> Optional[str]:
    """esummary lists identifiers under ``articleids``; the DOI is the ``doi`` entry."""
    if summary.get("doi"):
        return summary["doi"]
    for article_id in summary.get("articleids") or []:
        if article_id.get("idtype") == "doi" and article_id.get("value"):
            return article_id["value"]
    return None


def parse_abstracts(xml_text: str) -> Dict[str, str]:
    """Map PMID -> abstract text for every ``PubmedArticle`` in an efetch response."""
    soup = BeautifulSoup(xml_text, "xml")
    abstracts: Dict[str, str] = {}
    for article in soup.find_all("PubmedArticle"):
        pmid_tag = article.find("PMID")
        abstract_tag = article.find("Abstract")
        if pmid_tag is None or abstract_tag is None:
            continue
        parts = [t.get_text(" ", strip=True) for t in abstract_tag.find_all("AbstractText")]
        text = normalize_text(" ".join(p for p in parts if p))
        if text:
            abstracts[pmid_tag.get_text(strip=True)] = text
    return abstracts


class PubMedFetcher:
    """Async PubMed client.  Pass *client* to reuse a connection pool (or a mock transport)."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        email: Optional[str] = None,
        tool: Optional[str] = None,
    ) -> None:
        self.base_url = (base_url or settings.PUBMED_BASE_URL).rstrip("/")
        self.email = email or settings.PUBMED_EMAIL
        self.tool = tool or settings.PUBMED_TOOL
        self.timeout = httpx.Timeout(float(settings.PUBMED_TIMEOUT), connect=10.0)
        self._client = client

    def _params(self, **extra) -> dict:
        return {"db": "pubmed", "email": self.email, "tool": self.tool, **extra}

    async def _get(self, endpoint: str, params: dict) -> httpx.Response:
        url = f"{self.base_url}/{endpoint}"
        if self._client is not None:
            response = await self._client.get(url, params=params)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params)
        response.raise_for_status()
        return response

    async def search(self, query: str, max_results: int = 20) -> List[str]:
        """PMIDs matching *query*; an empty list when PubMed is unreachable."""
        try:
            response = await self._get(
                "esearch.fcgi",
                self._params(term=query, retmax=max_results, retmode="json"),
            )
            return list(response.json().get("esearchresult", {}).get("idlist", []))
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("PubMed search failed for %r: %s", query, exc)
            return []

    async def fetch_details(self, pmids: List[str]) -> List[PubMedArticle]:
        if not pmids:
            return []

        ids = ",".join(pmids)
        try:
            summary_resp = await self._get("esummary.fcgi", self._params(id=ids, retmode="json"))
            fetch_resp = await self._get("efetch.fcgi", self._params(id=ids, retmode="xml"))
            summaries = summary_resp.json().get("result", {})
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("PubMed detail fetch failed for %d ids: %s", len(pmids), exc)
            return []

        abstracts = parse_abstracts(fetch_resp.text)

        articles: List[PubMedArticle] = []
        for pmid in pmids:
            summary = summaries.get(pmid)
            abstract = abstracts.get(pmid, "")
            if not summary or not abstract:
                continue
            articles.append(
                PubMedArticle(
                    pmid=pmid,
                    title=summary.get("title") or "No title available",
                    abstract=abstract,
                    authors=[a["name"] for a in summary.get("authors") or [] if a.get("name")],
                    journal=summary.get("source") or "Unknown journal",
                    pub_date=summary.get("pubdate") or "",
                    doi=_doi_from_summary(summary),
                    keywords=extract_keywords(abstract),
                )
            )

        logger.info("Fetched %d/%d PubMed articles with abstracts", len(articles), len(pmids))
        return articles

    async def fetch(self, query: str, max_results: int = 25) -> List[PubMedArticle]:
        pmids = await self.search(query, max_results)
        logger.info("PubMed search %r returned %d ids", query, len(pmids))
        return await self.fetch_details(pmids)
