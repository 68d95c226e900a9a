"""
Authorship claims for imported papers.

Imported papers only carry free-text author names.  A registered user can
claim the papers whose author list mentions their name; claiming appends
the user's id to ``Paper.author_ids``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.config import settings
from paperforum.models.database_models import Paper, User
from paperforum.services.cache import response_cache

logger = logging.getLogger(__name__)


@dataclass
class ClaimResult:
    success: bool
    claimed_papers: int
    message: str


def calculate_name_similarity(name1: str, name2: str) -> float:
    """
    Share of whitespace tokens that match between two names.

    A token of *name1* matches when some token of *name2* equals it or one
    contains the other.  The match count is divided by the larger token
    count, so ``"Jane Smith"`` vs ``"Dr. Jane Smith"`` scores 2/3.
    """
    words1 = name1.lower().split()
    words2 = name2.lower().split()
    total = max(len(words1), len(words2))
    if total == 0:
        return 0.0

    matches = 0
    for word1 in words1:
        for word2 in words2:
            if word1 == word2 or word2 in word1 or word1 in word2:
                matches += 1
                break
    return matches / total


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def _name_matches(author: str, claimed_name: str) -> bool:
    author = author.strip().lower()
    claimed_name = claimed_name.strip().lower()
    if not author or not claimed_name:
        return False
    return claimed_name in author or author in claimed_name


async def get_potential_claims(
    db: AsyncSession,
    user: User,
    threshold: Optional[float] = None,
) -> List[Paper]:
    """Published papers the user is not yet linked to whose authors resemble the user's name."""
    threshold = settings.CLAIM_SIMILARITY_THRESHOLD if threshold is None else threshold

    result = await db.execute(
        select(Paper).where(Paper.is_published.is_(True)).order_by(Paper.id)
    )
    potential: List[Paper] = []
    for paper in result.scalars().all():
        if user.id in _as_list(paper.author_ids):
            continue
        if any(
            calculate_name_similarity(user.name, author) > threshold
            for author in _as_list(paper.authors)
            if isinstance(author, str)
        ):
            potential.append(paper)

    logger.info("Found %d potential claims for user=%d", len(potential), user.id)
    return potential


async def claim_authorship_by_name(
    db: AsyncSession,
    user: User,
    author_name: str,
    orcid: Optional[str] = None,
) -> ClaimResult:
    """
    Link *user* to every published paper listing *author_name*.

    Matching is a case-insensitive substring test in either direction.
    Papers already listing the user are left alone.  *orcid* is stored
    only when the user has none yet.
    """
    result = await db.execute(select(Paper).where(Paper.is_published.is_(True)))

    claimed = 0
    for paper in result.scalars().all():
        author_ids = _as_list(paper.author_ids)
        if user.id in author_ids:
            continue
        if any(
            _name_matches(author, author_name)
            for author in _as_list(paper.authors)
            if isinstance(author, str)
        ):
            # reassign so the JSON column registers the change
            paper.author_ids = [*author_ids, user.id]
            claimed += 1

    if orcid and not user.orcid:
        user.orcid = orcid

    await db.flush()
    if claimed:
        response_cache.invalidate_paper()
    logger.info("User %d claimed %d papers as %r", user.id, claimed, author_name)

    return ClaimResult(
        success=True,
        claimed_papers=claimed,
        message=f"Successfully claimed authorship of {claimed} papers",
    )
