"""
Normalise fetched PubMed / arXiv records into the import article shape and
write them to ``DATA_DIR`` as ``{"articles": [...]}`` JSON files that
``importer.import_from_json`` understands.
"""
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from paperforum.config import settings
from paperforum.services.arxiv_fetcher import ArxivArticle
from paperforum.services.pubmed_fetcher import PubMedArticle
from paperforum.utils.helpers import (
    extract_keywords,
    infer_field_from_keywords,
    map_arxiv_category,
)

logger = logging.getLogger(__name__)

ARXIV_JOURNAL = "arXiv preprint"


class DataCollector:
    def __init__(self, output_dir: Optional[Union[str, Path]] = None) -> None:
        self.output_dir = Path(output_dir or settings.DATA_DIR)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def format_pubmed(articles: List[PubMedArticle]) -> List[Dict[str, Any]]:
        return [
            {
                "title": a.title,
                "abstract": a.abstract,
                "authors": a.authors,
                "journal": a.journal,
                "doi": a.doi,
                "published_date": a.pub_date,
                "keywords": a.keywords,
                "research_field": infer_field_from_keywords(a.keywords),
                "subjects": a.keywords,
                "external_id": a.pmid,
                "source": "PubMed",
            }
            for a in articles
        ]

    @staticmethod
    def format_arxiv(articles: List[ArxivArticle]) -> List[Dict[str, Any]]:
        return [
            {
                "title": a.title,
                "abstract": a.abstract,
                "authors": a.authors,
                "journal": ARXIV_JOURNAL,
                "doi": a.doi,
                "published_date": a.submitted,
                "keywords": extract_keywords(a.abstract),
                "research_field": map_arxiv_category(a.categories[0] if a.categories else None),
                "subjects": a.categories,
                "pdf_url": a.pdf_url,
                "external_id": a.id,
                "source": "arXiv",
            }
            for a in articles
        ]

    def _write(self, prefix: str, formatted: List[Dict[str, Any]]) -> Path:
        path = self.output_dir / f"{prefix}-articles-{int(time.time() * 1000)}.json"
        with path.open("w", encoding="utf-8") as fh:
            json.dump({"articles": formatted}, fh, indent=2, ensure_ascii=False)
        logger.info("Saved %d %s articles to %s", len(formatted), prefix, path)
        return path

    def save_pubmed(self, articles: List[PubMedArticle]) -> Path:
        return self._write("pubmed", self.format_pubmed(articles))

    def save_arxiv(self, articles: List[ArxivArticle]) -> Path:
        return self._write("arxiv", self.format_arxiv(articles))
