"""
Notification endpoints.

Route summary
-------------
GET    /api/notifications                 — paginated list (?unread_only=true)
GET    /api/notifications/unread-count    — {count}
PUT    /api/notifications/read-all        — mark every notification read
PUT    /api/notifications/{id}/read       — mark one read
DELETE /api/notifications/{id}            — delete one
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.config import settings
from paperforum.database import get_db
from paperforum.dependencies.auth import get_current_user
from paperforum.models.database_models import Notification, User
from paperforum.models.schemas import (
    NotificationListResponse,
    NotificationResponse,
    SuccessResponse,
    UnreadCountResponse,
)
from paperforum.services.notifications import count_unread
from paperforum.utils.helpers import total_pages

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_own_notification(db: AsyncSession, notification_id: int, user: User) -> Notification:
    notification = await db.get(Notification, notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if notification.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return notification


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    unread_only: bool = False,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = select(Notification).where(Notification.user_id == user.id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))

    total = (
        await db.execute(select(func.count()).select_from(query.subquery()))
    ).scalar() or 0
    result = await db.execute(
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in result.scalars().all()],
        total=total,
        unread=await count_unread(db, user.id),
        page=page,
        total_pages=total_pages(total, limit),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCountResponse(count=await count_unread(db, user.id))


@router.put("/read-all", response_model=SuccessResponse)
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user.id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session="fetch")
    )
    logger.info("Marked %d notifications read for user %d", result.rowcount or 0, user.id)
    return SuccessResponse()


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await _get_own_notification(db, notification_id, user)
    notification.is_read = True
    await db.flush()
    return notification


@router.delete("/{notification_id}", response_model=SuccessResponse)
async def delete_notification(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await _get_own_notification(db, notification_id, user)
    await db.delete(notification)
    await db.flush()
    return SuccessResponse()
