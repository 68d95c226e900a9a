"""
Paper endpoints.

Only published papers are visible to the public; a creator can always
read their own drafts.

Route summary
-------------
GET    /api/papers                                  — published papers (paginated)
GET    /api/papers/search/advanced                  — filtered + sorted search
GET    /api/papers/trending                         — last 24 h by engagement
GET    /api/papers/mine                             — caller's papers incl. drafts
GET    /api/papers/{paper_id}                       — paper detail
POST   /api/papers                                  — create
PUT    /api/papers/{paper_id}                       — update (owner)
DELETE /api/papers/{paper_id}                       — delete (owner, cascades)

POST   /api/papers/{paper_id}/view                  — record a read
GET    /api/papers/{paper_id}/versions              — version history
GET    /api/papers/{paper_id}/versions/compare      — diff two versions
POST   /api/papers/{paper_id}/versions/{vid}/restore — restore (owner)
GET    /api/papers/{paper_id}/cite                  — formatted citation
GET    /api/papers/{paper_id}/insights              — Research Story insights
GET    /api/papers/{paper_id}/connections           — papers from other fields
POST   /api/papers/{paper_id}/request-review        — mark in_review (owner)

GET    /api/papers/{paper_id}/comments              — discussion thread
POST   /api/papers/{paper_id}/comments              — add comment
GET    /api/papers/{paper_id}/reviews               — public reviews
POST   /api/papers/{paper_id}/reviews               — add review
"""
import logging
from datetime import date, datetime, time, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.config import settings
from paperforum.database import get_db
from paperforum.dependencies.auth import get_current_user, get_optional_user, get_owned_paper
from paperforum.models.database_models import (
    Comment,
    Journal,
    NotificationType,
    Paper,
    PaperInsight,
    PaperStatus,
    PaperVersion,
    Review,
    User,
)
from paperforum.models.schemas import (
    CitationResponse,
    CommentCreate,
    CommentResponse,
    PaperCreate,
    PaperInsightResponse,
    PaperListResponse,
    PaperResponse,
    PaperSummary,
    PaperUpdate,
    PaperVersionResponse,
    PaperViewRequest,
    ReviewCreate,
    ReviewResponse,
    SuccessResponse,
    VersionCompareResponse,
    VersionDifferences,
)
from paperforum.services.analytics import (
    get_cross_field_connections,
    get_trending_papers,
    record_paper_view,
)
from paperforum.services.cache import response_cache
from paperforum.services.citations import CitationData, format_citation
from paperforum.services.notifications import create_notification
from paperforum.utils.helpers import total_pages, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

SORT_COLUMNS = {
    "relevance": Paper.engagement_score,
    "date": Paper.published_at,
    "views": Paper.view_count,
    "engagement": Paper.engagement_score,
    "title": Paper.title,
}

# explicit nulls for these are ignored on update
NON_NULLABLE_FIELDS = {"title", "abstract", "authors", "keywords", "story_data"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _get_published_paper(db: AsyncSession, paper_id: int) -> Paper:
    paper = await db.get(Paper, paper_id)
    if paper is None or not paper.is_published:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Paper not found")
    return paper


async def _page(db: AsyncSession, query, page: int, limit: int) -> PaperListResponse:
    total = (
        await db.execute(select(func.count()).select_from(query.order_by(None).subquery()))
    ).scalar() or 0
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return PaperListResponse(
        papers=[PaperResponse.model_validate(p) for p in result.scalars().all()],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages(total, limit),
    )


def _set_pagination_headers(response: Response, listing: PaperListResponse) -> None:
    response.headers["X-Total-Count"] = str(listing.total)
    response.headers["X-Page"] = str(listing.page)
    response.headers["X-Total-Pages"] = str(listing.total_pages)


def _as_utc(day: date, end_of_day: bool = False) -> datetime:
    return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=timezone.utc)


async def _notify_published(db: AsyncSession, paper: Paper) -> None:
    await create_notification(
        db,
        user_id=paper.created_by,
        type=NotificationType.PAPER_PUBLISHED,
        title="Paper Published",
        message=f'Your paper "{paper.title}" has been published successfully',
        entity_type="paper",
        entity_id=paper.id,
    )


# ---------------------------------------------------------------------------
# Listing / search
# ---------------------------------------------------------------------------

@router.get("", response_model=PaperListResponse)
async def list_papers(
    response: Response,
    search: Optional[str] = None,
    field: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    query = select(Paper).where(Paper.is_published.is_(True))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Paper.title.ilike(pattern), Paper.abstract.ilike(pattern)))
    if field:
        query = query.where(Paper.research_field == field)
    query = query.order_by(Paper.created_at.desc(), Paper.id.desc())

    listing = await _page(db, query, page, limit)
    _set_pagination_headers(response, listing)
    return listing


@router.get("/search/advanced", response_model=PaperListResponse)
async def advanced_search(
    response: Response,
    query: Optional[str] = None,
    author: Optional[str] = None,
    field: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort_by: str = Query("relevance", pattern="^(relevance|date|views|engagement|title)$"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Paper).where(Paper.is_published.is_(True))
    if query:
        pattern = f"%{query}%"
        stmt = stmt.where(or_(Paper.title.ilike(pattern), Paper.abstract.ilike(pattern)))
    if author:
        # authors is a JSON list; match against its serialised form
        stmt = stmt.where(cast(Paper.authors, String).ilike(f"%{author}%"))
    if field:
        stmt = stmt.where(Paper.research_field == field)
    if start_date:
        stmt = stmt.where(Paper.published_at >= _as_utc(start_date))
    if end_date:
        stmt = stmt.where(Paper.published_at <= _as_utc(end_date, end_of_day=True))

    column = SORT_COLUMNS[sort_by]
    stmt = stmt.order_by(column.asc() if order == "asc" else column.desc(), Paper.id.desc())

    listing = await _page(db, stmt, page, limit)
    _set_pagination_headers(response, listing)
    return listing


@router.get("/trending", response_model=List[PaperSummary])
async def trending_papers(
    limit: int = Query(10, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    cached = response_cache.lookup(response_cache.trending_papers, limit)
    if cached is not None:
        return cached

    papers = [PaperSummary.model_validate(p) for p in await get_trending_papers(db, limit)]
    response_cache.store(response_cache.trending_papers, limit, papers)
    return papers


@router.get("/mine", response_model=List[PaperResponse])
async def my_papers(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Paper)
        .where(Paper.created_by == user.id)
        .order_by(Paper.updated_at.desc(), Paper.id.desc())
    )
    return result.scalars().all()


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.get("/{paper_id}", response_model=PaperResponse)
async def get_paper(
    paper_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    cached = response_cache.get_paper(paper_id)
    if cached is not None:
        return cached

    paper = await db.get(Paper, paper_id)
    if paper is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Paper not found")
    if not paper.is_published and (viewer is None or viewer.id != paper.created_by):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Paper not found")

    result = PaperResponse.model_validate(paper)
    # drafts are only ever shown to their creator
    if paper.is_published:
        response_cache.set_paper(paper_id, result)
    return result


@router.post("", response_model=PaperResponse, status_code=status.HTTP_201_CREATED)
async def create_paper(
    body: PaperCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if body.journal_id is not None and await db.get(Journal, body.journal_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown journal")

    publishing = body.status == PaperStatus.PUBLISHED
    paper = Paper(
        **body.model_dump(exclude={"status"}),
        status=body.status.value,
        author_ids=[user.id],
        created_by=user.id,
        version=1,
        is_published=publishing,
        published_at=utcnow() if publishing else None,
    )
    db.add(paper)
    await db.flush()

    if publishing:
        await _notify_published(db, paper)

    await db.refresh(paper)
    response_cache.invalidate_paper(paper.id)
    logger.info("User %d created paper %d (%s)", user.id, paper.id, paper.status)
    return paper


@router.put("/{paper_id}", response_model=PaperResponse)
async def update_paper(
    body: PaperUpdate,
    paper: Paper = Depends(get_owned_paper),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updates = body.model_dump(exclude_unset=True)
    new_status = updates.pop("status", None)

    if updates.get("journal_id") is not None and await db.get(Journal, updates["journal_id"]) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown journal")

    newly_published = new_status == PaperStatus.PUBLISHED and not paper.is_published

    for key, value in updates.items():
        if key in NON_NULLABLE_FIELDS and value is None:
            continue
        setattr(paper, key, value)

    if new_status is not None:
        paper.status = new_status.value

    if newly_published:
        paper.is_published = True
        paper.published_at = utcnow()
        paper.version = (paper.version or 0) + 1
        db.add(
            PaperVersion(
                paper_id=paper.id,
                version=paper.version,
                title=paper.title,
                abstract=paper.abstract,
                content=paper.content,
                pdf_url=paper.pdf_url,
                created_by=user.id,
            )
        )
    elif new_status == PaperStatus.DRAFT:
        paper.is_published = False

    await db.flush()

    if newly_published:
        await _notify_published(db, paper)

    await db.refresh(paper)
    response_cache.invalidate_paper(paper.id)
    return paper


@router.delete("/{paper_id}", response_model=SuccessResponse)
async def delete_paper(
    paper: Paper = Depends(get_owned_paper),
    db: AsyncSession = Depends(get_db),
):
    paper_id = paper.id
    await db.delete(paper)
    await db.flush()
    response_cache.invalidate_paper(paper_id)
    logger.info("Deleted paper %d", paper_id)
    return SuccessResponse(message="Paper deleted")


# ---------------------------------------------------------------------------
# Views / versions / citations
# ---------------------------------------------------------------------------

@router.post("/{paper_id}/view", response_model=SuccessResponse)
async def record_view(
    paper_id: int,
    body: Optional[PaperViewRequest] = None,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if await db.get(Paper, paper_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Paper not found")

    body = body or PaperViewRequest()
    await record_paper_view(
        db,
        paper_id,
        user_id=viewer.id if viewer else None,
        session_id=body.session_id,
        read_time=body.read_time,
    )
    response_cache.invalidate_paper(paper_id)
    return SuccessResponse()


@router.get("/{paper_id}/versions", response_model=List[PaperVersionResponse])
async def list_versions(paper_id: int, db: AsyncSession = Depends(get_db)):
    await _get_published_paper(db, paper_id)
    result = await db.execute(
        select(PaperVersion)
        .where(PaperVersion.paper_id == paper_id)
        .order_by(PaperVersion.version.desc())
    )
    return result.scalars().all()


@router.get("/{paper_id}/versions/compare", response_model=VersionCompareResponse)
async def compare_versions(
    paper_id: int,
    v1: int = Query(...),
    v2: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    await _get_published_paper(db, paper_id)
    result = await db.execute(
        select(PaperVersion).where(
            PaperVersion.paper_id == paper_id,
            PaperVersion.version.in_([v1, v2]),
        )
    )
    by_number = {v.version: v for v in result.scalars().all()}
    version1, version2 = by_number.get(v1), by_number.get(v2)
    if version1 is None or version2 is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Version not found")

    return VersionCompareResponse(
        version1=PaperVersionResponse.model_validate(version1),
        version2=PaperVersionResponse.model_validate(version2),
        differences=VersionDifferences(
            title=version1.title != version2.title,
            abstract=version1.abstract != version2.abstract,
            content=version1.content != version2.content,
        ),
    )


@router.post("/{paper_id}/versions/{version_id}/restore", response_model=PaperResponse)
async def restore_version(
    version_id: int,
    paper: Paper = Depends(get_owned_paper),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await db.get(PaperVersion, version_id)
    if target is None or target.paper_id != paper.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Version not found")

    # keep the current state as its own version before overwriting it
    current_version = paper.version or 0
    db.add(
        PaperVersion(
            paper_id=paper.id,
            version=current_version + 1,
            title=paper.title,
            abstract=paper.abstract,
            content=paper.content or "",
            pdf_url=paper.pdf_url or "",
            created_by=user.id,
        )
    )

    paper.title = target.title
    paper.abstract = target.abstract
    paper.content = target.content
    paper.version = current_version + 2

    await db.flush()
    await db.refresh(paper)
    response_cache.invalidate_paper(paper.id)
    logger.info("Paper %d restored from version %d", paper.id, target.version)
    return paper


@router.get("/{paper_id}/cite", response_model=CitationResponse)
async def cite_paper(
    paper_id: int,
    format: str = Query("apa"),
    db: AsyncSession = Depends(get_db),
):
    paper = await _get_published_paper(db, paper_id)
    journal = await db.get(Journal, paper.journal_id) if paper.journal_id else None

    data = CitationData(
        title=paper.title,
        authors=[a for a in (paper.authors or []) if isinstance(a, str)],
        year=paper.published_at.year if paper.published_at else None,
        journal=journal.name if journal else None,
        doi=paper.doi,
        published_at=paper.published_at,
    )
    return CitationResponse(format=format, citation=format_citation(data, format))


@router.get("/{paper_id}/insights", response_model=List[PaperInsightResponse])
async def paper_insights(paper_id: int, db: AsyncSession = Depends(get_db)):
    await _get_published_paper(db, paper_id)
    result = await db.execute(
        select(PaperInsight)
        .where(PaperInsight.paper_id == paper_id)
        .order_by(PaperInsight.impact_score.desc())
    )
    return result.scalars().all()


@router.get("/{paper_id}/connections", response_model=List[PaperSummary])
async def paper_connections(
    paper_id: int,
    limit: int = Query(5, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    paper = await _get_published_paper(db, paper_id)
    return await get_cross_field_connections(db, paper, limit)


@router.post("/{paper_id}/request-review", response_model=SuccessResponse)
async def request_review(
    paper: Paper = Depends(get_owned_paper),
    db: AsyncSession = Depends(get_db),
):
    paper.status = PaperStatus.IN_REVIEW.value
    await db.flush()
    response_cache.invalidate_paper(paper.id)
    logger.info("Review requested for paper %d", paper.id)
    return SuccessResponse(message="Review requested successfully")


# ---------------------------------------------------------------------------
# Comments / reviews
# ---------------------------------------------------------------------------

@router.get("/{paper_id}/comments", response_model=List[CommentResponse])
async def list_comments(paper_id: int, db: AsyncSession = Depends(get_db)):
    await _get_published_paper(db, paper_id)
    result = await db.execute(
        select(Comment)
        .where(Comment.paper_id == paper_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return result.scalars().all()


@router.post("/{paper_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    paper_id: int,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    paper = await _get_published_paper(db, paper_id)

    if body.parent_id is not None:
        parent = await db.get(Comment, body.parent_id)
        if parent is None or parent.paper_id != paper.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Parent comment not found on this paper",
            )

    comment = Comment(
        paper_id=paper.id,
        user_id=user.id,
        content=body.content,
        parent_id=body.parent_id,
    )
    db.add(comment)
    await db.flush()

    if paper.created_by != user.id:
        await create_notification(
            db,
            user_id=paper.created_by,
            type=NotificationType.NEW_COMMENT,
            title="New Comment",
            message=f'{user.name} commented on your paper "{paper.title}"',
            entity_type="paper",
            entity_id=paper.id,
        )

    await db.refresh(comment)
    return comment


@router.get("/{paper_id}/reviews", response_model=List[ReviewResponse])
async def list_reviews(paper_id: int, db: AsyncSession = Depends(get_db)):
    await _get_published_paper(db, paper_id)
    result = await db.execute(
        select(Review)
        .where(Review.paper_id == paper_id, Review.is_public.is_(True))
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return result.scalars().all()


@router.post("/{paper_id}/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def add_review(
    paper_id: int,
    body: ReviewCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    paper = await _get_published_paper(db, paper_id)

    review = Review(
        paper_id=paper.id,
        user_id=user.id,
        content=body.content,
        rating=body.rating,
        recommendation=body.recommendation,
        is_public=True,
    )
    db.add(review)
    await db.flush()

    if paper.created_by != user.id:
        await create_notification(
            db,
            user_id=paper.created_by,
            type=NotificationType.NEW_REVIEW,
            title="New Review",
            message=f'{user.name} reviewed your paper "{paper.title}"',
            entity_type="paper",
            entity_id=paper.id,
        )

    await db.refresh(review)
    return review
