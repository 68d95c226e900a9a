"""
Bookmark endpoints.

Route summary
-------------
GET    /api/bookmarks                      — caller's bookmarks, newest first
POST   /api/bookmarks/{paper_id}           — bookmark (idempotent)
DELETE /api/bookmarks/{paper_id}           — remove bookmark
GET    /api/bookmarks/{paper_id}/status    — is the paper bookmarked?
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from paperforum.database import get_db
from paperforum.dependencies.auth import get_current_user
from paperforum.models.database_models import Bookmark, Paper, User
from paperforum.models.schemas import BookmarkResponse, BookmarkStatusResponse, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


async def _find_bookmark(db: AsyncSession, user_id: int, paper_id: int):
    result = await db.execute(
        select(Bookmark).where(Bookmark.user_id == user_id, Bookmark.paper_id == paper_id)
    )
    return result.scalar_one_or_none()


@router.get("", response_model=List[BookmarkResponse])
async def list_bookmarks(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Bookmark)
        .where(Bookmark.user_id == user.id)
        .options(selectinload(Bookmark.paper))
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
    )
    return result.scalars().all()


@router.post("/{paper_id}", response_model=SuccessResponse)
async def add_bookmark(
    paper_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    paper = await db.get(Paper, paper_id)
    if paper is None or (not paper.is_published and paper.created_by != user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Paper not found")

    if await _find_bookmark(db, user.id, paper_id) is None:
        db.add(Bookmark(user_id=user.id, paper_id=paper_id))
        await db.flush()
        logger.info("User %d bookmarked paper %d", user.id, paper_id)

    return SuccessResponse(message="Bookmark added successfully")


@router.delete("/{paper_id}", response_model=SuccessResponse)
async def remove_bookmark(
    paper_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.execute(
        delete(Bookmark)
        .where(Bookmark.user_id == user.id, Bookmark.paper_id == paper_id)
        .execution_options(synchronize_session="fetch")
    )
    return SuccessResponse(message="Bookmark removed successfully")


@router.get("/{paper_id}/status", response_model=BookmarkStatusResponse)
async def bookmark_status(
    paper_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    bookmarked = await _find_bookmark(db, user.id, paper_id) is not None
    return BookmarkStatusResponse(paper_id=paper_id, bookmarked=bookmarked)
