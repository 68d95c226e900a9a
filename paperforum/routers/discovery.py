"""
Discovery endpoints: engagement tracking, trending topics and journals.

Route summary
-------------
POST   /api/interactions       — record like/share/save/... (weighted engagement)
GET    /api/trending-topics    — research fields by momentum
GET    /api/journals           — known journals
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.database import get_db
from paperforum.dependencies.auth import get_current_user
from paperforum.models.database_models import Journal, Paper, User
from paperforum.models.schemas import (
    InteractionCreate,
    InteractionResponse,
    JournalResponse,
    TrendingTopicResponse,
)
from paperforum.services.analytics import get_trending_topics, record_interaction
from paperforum.services.cache import response_cache

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/interactions", response_model=InteractionResponse, status_code=status.HTTP_201_CREATED)
async def create_interaction(
    body: InteractionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if await db.get(Paper, body.paper_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Paper not found")

    interaction = await record_interaction(
        db,
        user_id=user.id,
        paper_id=body.paper_id,
        interaction_type=body.interaction_type.value,
        metadata=body.metadata,
    )
    response_cache.invalidate_paper(body.paper_id)
    await db.refresh(interaction)
    return interaction


@router.get("/trending-topics", response_model=List[TrendingTopicResponse])
async def trending_topics(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    cached = response_cache.lookup(response_cache.trending_topics, limit)
    if cached is not None:
        return cached

    topics = [TrendingTopicResponse.model_validate(t) for t in await get_trending_topics(db, limit)]
    response_cache.store(response_cache.trending_topics, limit, topics)
    return topics


@router.get("/journals", response_model=List[JournalResponse])
async def list_journals(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Journal).order_by(Journal.name))
    return result.scalars().all()
