"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
import logging

from paperforum.database import get_db
from paperforum.models.schemas import HealthCheckResponse
from paperforum.utils.helpers import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint to verify system status.

    Returns:
        HealthCheckResponse with the database status
    """
    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "error"

    return HealthCheckResponse(
        status="healthy" if db_status == "ok" else "degraded",
        database=db_status,
        timestamp=utcnow(),
    )
