"""
Notification helpers shared by the paper, comment and review endpoints.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.models.database_models import Notification, NotificationType
from paperforum.utils.helpers import utcnow

logger = logging.getLogger(__name__)


async def create_notification(
    db: AsyncSession,
    *,
    user_id: int,
    type: NotificationType,
    title: str,
    message: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=type.value,
        title=title,
        message=message,
        entity_type=entity_type,
        entity_id=entity_id,
        is_read=False,
    )
    db.add(notification)
    await db.flush()
    logger.info("Notification %s -> user=%d (%s)", type.value, user_id, title)
    return notification


async def count_unread(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
    )
    return result.scalar() or 0


async def cleanup_read_notifications(db: AsyncSession, older_than_days: int) -> int:
    """Delete read notifications older than *older_than_days*. Returns the row count."""
    cutoff = utcnow() - timedelta(days=older_than_days)
    result = await db.execute(
        delete(Notification).where(
            Notification.is_read.is_(True),
            Notification.created_at < cutoff,
        )
    )
    return result.rowcount or 0
