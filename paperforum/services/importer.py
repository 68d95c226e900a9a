"""
Bulk import of external articles as published papers.

Imported papers are attributed to a random existing user (run the seed
script first on an empty database) and keep the original author names in
``Paper.authors`` so real authors can claim them later.
"""
from __future__ import annotations

import json
import logging
import random
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.models.database_models import Journal, Paper, PaperStatus, User
from paperforum.models.schemas import ImportArticle
from paperforum.services.cache import response_cache
from paperforum.utils.helpers import DEFAULT_FIELD, slugify, utcnow

logger = logging.getLogger(__name__)

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%Y %b %d", "%Y %b", "%Y-%m", "%Y")


SAMPLE_ARTICLES: List[Dict[str, Any]] = [
    {
        "title": "Deep Learning for Climate Change Mitigation: A Comprehensive Review",
        "abstract": (
            "Climate change poses one of the most significant challenges of our time, requiring "
            "innovative solutions across multiple domains. This comprehensive review examines the "
            "application of deep learning techniques to climate change mitigation strategies, "
            "including renewable energy optimization, carbon footprint reduction, and environmental "
            "monitoring. We analyze over 200 peer-reviewed studies published between 2018-2024, "
            "identifying key trends, methodologies, and breakthrough applications."
        ),
        "content": (
            "## Introduction\n\nDeep learning algorithms, with their ability to process vast amounts "
            "of environmental data and identify complex patterns, offer new opportunities for "
            "climate change mitigation.\n\n## Applications in Renewable Energy\n\n"
            "- Solar irradiance forecasting\n- Wind pattern prediction\n- Intelligent grid management\n\n"
            "## Conclusion\n\nContinued research in this field could accelerate the transition to "
            "sustainable technologies."
        ),
        "authors": ["Dr. Elena Rodriguez", "Prof. Michael Chen", "Dr. Sarah Thompson"],
        "journal": "Nature Climate Change",
        "doi": "10.1038/s41558-024-01234-5",
        "published_date": "2024-01-15",
        "keywords": [
            "deep learning",
            "climate change",
            "renewable energy",
            "carbon footprint",
            "environmental monitoring",
            "artificial intelligence",
        ],
        "research_field": "Environmental Science",
        "volume": "14",
        "issue": "2",
        "pages": "123-145",
        "subjects": ["Climate Science", "Artificial Intelligence", "Renewable Energy"],
    },
    {
        "title": "CRISPR-Cas9 Gene Editing: Recent Advances in Therapeutic Applications",
        "abstract": (
            "The CRISPR-Cas9 system has revolutionized gene editing, offering unprecedented precision "
            "in modifying genetic sequences. This review examines recent therapeutic applications of "
            "CRISPR technology, including treatments for genetic disorders, cancer therapy, and "
            "infectious diseases. We analyze clinical trial data from 2020-2024, highlighting "
            "successful treatments and emerging challenges."
        ),
        "authors": ["Dr. Jennifer Liu", "Prof. Robert Kim", "Dr. Alexandra Petrov"],
        "journal": "Cell",
        "doi": "10.1016/j.cell.2024.02.001",
        "published_date": "2024-02-08",
        "keywords": [
            "CRISPR",
            "gene editing",
            "therapeutics",
            "genetic disorders",
            "cancer therapy",
            "clinical trials",
        ],
        "research_field": "Biotechnology",
        "subjects": ["Molecular Biology", "Genetics", "Medical Biotechnology"],
    },
    {
        "title": "Quantum Computing Applications in Cryptography and Security",
        "abstract": (
            "Quantum computing represents a paradigm shift in computational capabilities, with "
            "profound implications for cryptography and cybersecurity. This paper explores current "
            "quantum computing technologies and their applications in breaking traditional "
            "encryption methods while enabling quantum-resistant security protocols."
        ),
        "authors": ["Prof. David Zhang", "Dr. Maria Gonzalez", "Dr. James Wilson"],
        "journal": "Physical Review X",
        "doi": "10.1103/PhysRevX.14.021032",
        "published_date": "2024-03-12",
        "keywords": [
            "quantum computing",
            "cryptography",
            "cybersecurity",
            "quantum supremacy",
            "post-quantum cryptography",
        ],
        "research_field": "Computer Science",
        "subjects": ["Quantum Physics", "Computer Security", "Cryptography"],
    },
]


def parse_published_date(value: Optional[str]) -> datetime:
    """
    Parse the loose date strings found in import files.

    Accepts ISO dates and timestamps as well as PubMed's ``2024 Jan 15`` /
    ``2024 Jan`` / ``2024`` forms.  Unparseable or missing values fall back
    to the current time.
    """
    if not value:
        return utcnow()

    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            logger.warning("Unrecognised published date %r, using now", value)
            return utcnow()

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def create_journal_if_not_exists(
    db: AsyncSession, name: Optional[str], issn: Optional[str] = None
) -> Optional[Journal]:
    if not name:
        return None

    slug = slugify(name)
    result = await db.execute(
        select(Journal).where((Journal.name == name) | (Journal.slug == slug))
    )
    journal = result.scalars().first()
    if journal:
        return journal

    journal = Journal(
        name=name,
        slug=slug,
        description=f"Scientific journal: {name}",
        issn=issn,
    )
    db.add(journal)
    await db.flush()
    logger.info("Created journal %r (slug=%s)", name, slug)
    return journal


async def get_random_user(db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).order_by(User.id).limit(10))
    users = result.scalars().all()
    return random.choice(users) if users else None


async def import_article(
    db: AsyncSession,
    article: Union[ImportArticle, Dict[str, Any]],
    creator: Optional[User] = None,
) -> Optional[Paper]:
    """
    Insert one article as a published paper.

    Returns None (with a log line) when the database has no users to own
    the paper.  Validation and database errors propagate to the caller.
    """
    if not isinstance(article, ImportArticle):
        article = ImportArticle.model_validate(article)

    if creator is None:
        creator = await get_random_user(db)
    if creator is None:
        logger.error("No users found in database. Run the seed script first.")
        return None

    journal = await create_journal_if_not_exists(db, article.journal, article.issn)

    paper = Paper(
        title=article.title,
        abstract=article.abstract,
        content=article.content or article.abstract,
        authors=list(article.authors),
        author_ids=[creator.id],
        research_field=article.research_field or DEFAULT_FIELD,
        keywords=list(article.keywords),
        doi=article.doi,
        pdf_url=article.pdf_url,
        status=PaperStatus.PUBLISHED.value,
        is_published=True,
        published_at=parse_published_date(article.published_date),
        journal_id=journal.id if journal else None,
        # imported papers start with some visible activity
        view_count=random.randint(100, 1099),
        engagement_score=random.randint(50, 149),
        created_by=creator.id,
        version=1,
        story_data={},
    )
    db.add(paper)
    await db.flush()
    response_cache.invalidate_paper(paper.id)
    logger.info("Imported %r as paper %d", article.title, paper.id)
    return paper


async def import_articles(db: AsyncSession, articles: Iterable[Any]) -> int:
    """
    Import *articles* one at a time, committing after each.

    A failing article is logged, rolled back and skipped.  Returns the
    number of papers created.
    """
    imported = 0
    for index, raw in enumerate(articles):
        title = raw.get("title") if isinstance(raw, dict) else getattr(raw, "title", None)
        try:
            paper = await import_article(db, raw)
            if paper is None:
                await db.rollback()
                break
            await db.commit()
            imported += 1
        except ValidationError as exc:
            await db.rollback()
            logger.error("Skipping article #%d (%r): invalid data: %s", index, title, exc)
        except Exception as exc:
            await db.rollback()
            logger.error("Failed to import article #%d (%r): %s", index, title, exc, exc_info=True)

    logger.info("Import finished: %d papers created", imported)
    return imported


def load_articles(path: Union[str, Path]) -> List[Any]:
    """Read an import file holding either a list or ``{"articles": [...]}``."""
    with Path(path).open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("articles"), list):
        return data["articles"]
    raise ValueError(f"{path}: expected a list or an object with an 'articles' list")


async def import_from_json(db: AsyncSession, path: Union[str, Path]) -> int:
    articles = load_articles(path)
    logger.info("Found %d articles to import in %s", len(articles), path)
    return await import_articles(db, articles)


async def import_sample_articles(db: AsyncSession) -> int:
    logger.info("Importing %d sample articles", len(SAMPLE_ARTICLES))
    return await import_articles(db, SAMPLE_ARTICLES)
