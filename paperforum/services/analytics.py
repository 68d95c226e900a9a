"""
View tracking, engagement scoring, trending papers/topics and simple
field-based recommendations.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.config import settings
from paperforum.models.database_models import (
    Comment,
    InteractionType,
    Paper,
    PaperView,
    TrendingTopic,
    UserInteraction,
)
from paperforum.services.cache import response_cache
from paperforum.utils.helpers import utcnow

logger = logging.getLogger(__name__)

INTERACTION_WEIGHTS: Dict[str, int] = {
    InteractionType.VIEW.value: 1,
    InteractionType.LIKE.value: 3,
    InteractionType.SHARE.value: 5,
    InteractionType.SAVE.value: 4,
    InteractionType.COMMENT.value: 6,
}

# comments count three times as much as views towards topic momentum
COMMENT_MOMENTUM_WEIGHT = 3


def interaction_weight(interaction_type: str) -> int:
    return INTERACTION_WEIGHTS.get(interaction_type, 1)


async def record_paper_view(
    db: AsyncSession,
    paper_id: int,
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
    read_time: Optional[int] = None,
) -> PaperView:
    view = PaperView(
        paper_id=paper_id,
        user_id=user_id,
        session_id=session_id,
        read_time_seconds=read_time,
    )
    db.add(view)
    await db.execute(
        update(Paper)
        .where(Paper.id == paper_id)
        .values(
            view_count=Paper.view_count + 1,
            engagement_score=Paper.engagement_score + 1,
        )
        .execution_options(synchronize_session="fetch")
    )
    await db.flush()
    return view


async def record_interaction(
    db: AsyncSession,
    user_id: int,
    paper_id: int,
    interaction_type: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> UserInteraction:
    interaction = UserInteraction(
        user_id=user_id,
        paper_id=paper_id,
        interaction_type=interaction_type,
        metadata_json=metadata or {},
    )
    db.add(interaction)
    await db.execute(
        update(Paper)
        .where(Paper.id == paper_id)
        .values(engagement_score=Paper.engagement_score + interaction_weight(interaction_type))
        .execution_options(synchronize_session="fetch")
    )
    await db.flush()
    return interaction


async def get_trending_papers(db: AsyncSession, limit: int = 10) -> List[Paper]:
    """Published in the last ``TRENDING_WINDOW_HOURS``, by engagement then views."""
    since = utcnow() - timedelta(hours=settings.TRENDING_WINDOW_HOURS)
    result = await db.execute(
        select(Paper)
        .where(Paper.is_published.is_(True), Paper.published_at >= since)
        .order_by(Paper.engagement_score.desc(), Paper.view_count.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_recommendations(db: AsyncSession, user_id: int, limit: int = 5) -> List[Paper]:
    """
    Papers from the fields the user has interacted with.
    Users without any history get the trending list instead.
    """
    fields_result = await db.execute(
        select(Paper.research_field)
        .join(UserInteraction, UserInteraction.paper_id == Paper.id)
        .where(UserInteraction.user_id == user_id, Paper.research_field.is_not(None))
        .group_by(Paper.research_field)
        .limit(3)
    )
    fields = [f for f in fields_result.scalars().all() if f]
    if not fields:
        return await get_trending_papers(db, limit)

    result = await db.execute(
        select(Paper)
        .where(Paper.is_published.is_(True), Paper.research_field.in_(fields))
        .order_by(Paper.engagement_score.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_cross_field_connections(db: AsyncSession, paper: Paper, limit: int = 5) -> List[Paper]:
    """Most-viewed published papers from other research fields."""
    query = select(Paper).where(Paper.is_published.is_(True), Paper.id != paper.id)
    if paper.research_field:
        query = query.where(
            (Paper.research_field != paper.research_field) | Paper.research_field.is_(None)
        )
    result = await db.execute(query.order_by(Paper.view_count.desc()).limit(limit))
    return list(result.scalars().all())


async def update_trending_topics(db: AsyncSession) -> int:
    """
    Recompute topic momentum from papers published in the last
    ``TRENDING_TOPICS_WINDOW_DAYS``: views plus weighted comment count,
    summed per research field.  Returns the number of topics written.
    """
    since = utcnow() - timedelta(days=settings.TRENDING_TOPICS_WINDOW_DAYS)
    comment_count = (
        select(func.count(Comment.id))
        .where(Comment.paper_id == Paper.id)
        .correlate(Paper)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Paper.id, Paper.research_field, Paper.view_count, comment_count.label("comments"))
        .where(Paper.is_published.is_(True), Paper.published_at >= since)
    )

    momentum: Dict[str, int] = defaultdict(int)
    related: Dict[str, List[int]] = defaultdict(list)
    for row in result:
        if not row.research_field:
            continue
        momentum[row.research_field] += (row.view_count or 0) + (row.comments or 0) * COMMENT_MOMENTUM_WEIGHT
        related[row.research_field].append(row.id)

    now = utcnow()
    for field, score in momentum.items():
        existing = await db.execute(select(TrendingTopic).where(TrendingTopic.topic == field))
        topic = existing.scalar_one_or_none()
        if topic is None:
            topic = TrendingTopic(topic=field, field=field)
            db.add(topic)
        topic.momentum = score
        topic.related_paper_ids = related[field]
        topic.calculated_at = now

    await db.flush()
    response_cache.invalidate_topics()
    logger.info("Trending topics updated for %d fields", len(momentum))
    return len(momentum)


async def get_trending_topics(db: AsyncSession, limit: int = 10) -> List[TrendingTopic]:
    result = await db.execute(
        select(TrendingTopic)
        .order_by(TrendingTopic.momentum.desc(), TrendingTopic.calculated_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
