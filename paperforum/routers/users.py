"""
Per-user endpoints.

Route summary
-------------
GET    /api/user/potential-claims    — imported papers whose authors resemble the caller
POST   /api/user/claim-authorship    — link the caller to papers by author name
GET    /api/user/dashboard           — counts + recent papers
GET    /api/user/recommendations     — papers from fields the caller engages with
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.database import get_db
from paperforum.dependencies.auth import get_current_user
from paperforum.models.database_models import Bookmark, Paper, User
from paperforum.models.schemas import (
    ClaimRequest,
    ClaimResponse,
    DashboardResponse,
    PaperSummary,
    PotentialClaim,
)
from paperforum.services.analytics import get_recommendations
from paperforum.services.author_claim import claim_authorship_by_name, get_potential_claims
from paperforum.services.notifications import count_unread

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/potential-claims", response_model=List[PotentialClaim])
async def potential_claims(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_potential_claims(db, user)


@router.post("/claim-authorship", response_model=ClaimResponse)
async def claim_authorship(
    body: ClaimRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    author_name = (body.author_name or "").strip()
    if not author_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Author name is required",
        )

    result = await claim_authorship_by_name(db, user, author_name, body.orcid)
    return ClaimResponse(
        success=result.success,
        claimed_papers=result.claimed_papers,
        message=result.message,
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    totals = (
        await db.execute(
            select(
                func.count(Paper.id),
                func.count(Paper.id).filter(Paper.is_published.is_(True)),
                func.coalesce(func.sum(Paper.view_count), 0),
            ).where(Paper.created_by == user.id)
        )
    ).one()
    total_papers, published, total_views = totals

    bookmarks = (
        await db.execute(select(func.count(Bookmark.id)).where(Bookmark.user_id == user.id))
    ).scalar() or 0

    recent = await db.execute(
        select(Paper)
        .where(Paper.created_by == user.id)
        .order_by(Paper.created_at.desc(), Paper.id.desc())
        .limit(5)
    )

    return DashboardResponse(
        total_papers=total_papers or 0,
        published_papers=published or 0,
        draft_papers=(total_papers or 0) - (published or 0),
        total_views=int(total_views or 0),
        bookmarks=bookmarks,
        unread_notifications=await count_unread(db, user.id),
        recent_papers=[PaperSummary.model_validate(p) for p in recent.scalars().all()],
    )


@router.get("/recommendations", response_model=List[PaperSummary])
async def recommendations(
    limit: int = Query(5, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_recommendations(db, user.id, limit)
