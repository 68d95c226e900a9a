"""
Pydantic schemas for request/response validation.

Free-text request fields are stripped of HTML before they reach the
database (see ``services.security.sanitize_text``).
"""
from pydantic import AliasChoices, BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

from paperforum.services.security import sanitize_value


class PaperStatusSchema(str, Enum):
    """Paper status values accepted by the API."""

    DRAFT = "draft"
    PUBLISHED = "published"
    IN_REVIEW = "in_review"


class CitationFormat(str, Enum):
    APA = "apa"
    MLA = "mla"
    CHICAGO = "chicago"
    BIBTEX = "bibtex"
    ENDNOTE = "endnote"


class InteractionTypeSchema(str, Enum):
    VIEW = "view"
    LIKE = "like"
    SHARE = "share"
    SAVE = "save"
    COMMENT = "comment"


class SanitizedModel(BaseModel):
    """Request model whose string fields (nested included) are HTML-stripped."""

    @field_validator("*", mode="before")
    @classmethod
    def _strip_html(cls, value: Any) -> Any:
        return sanitize_value(value)


# ---------------------------------------------------------------------------
# Users / auth
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., max_length=255)
    name: str = Field(..., min_length=1, max_length=255)

    # passwords are hashed verbatim
    @field_validator("email", "name", mode="before")
    @classmethod
    def _strip_html(cls, value: Any) -> Any:
        return sanitize_value(value)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.strip().lower()


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class ProfileUpdateRequest(SanitizedModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    orcid: Optional[str] = Field(None, max_length=64)
    affiliation: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None


class UserSummary(BaseModel):
    id: int
    email: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class UserProfile(UserSummary):
    orcid: Optional[str] = None
    affiliation: Optional[str] = None
    bio: Optional[str] = None


class AuthResponse(BaseModel):
    user: UserSummary
    token: str


# ---------------------------------------------------------------------------
# Papers
# ---------------------------------------------------------------------------

class PaperCreate(SanitizedModel):
    title: str = Field(..., min_length=1)
    abstract: str = Field(..., min_length=1)
    content: Optional[str] = None
    authors: List[str] = []
    research_field: Optional[str] = None
    keywords: List[str] = []
    status: PaperStatusSchema = PaperStatusSchema.DRAFT
    pdf_url: Optional[str] = None
    doi: Optional[str] = None
    journal_id: Optional[int] = None
    story_data: Dict[str, Any] = {}


class PaperUpdate(SanitizedModel):
    """Partial update. ``is_published``/``published_at`` are derived from ``status``."""

    title: Optional[str] = Field(None, min_length=1)
    abstract: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None
    authors: Optional[List[str]] = None
    research_field: Optional[str] = None
    keywords: Optional[List[str]] = None
    status: Optional[PaperStatusSchema] = None
    pdf_url: Optional[str] = None
    doi: Optional[str] = None
    journal_id: Optional[int] = None
    story_data: Optional[Dict[str, Any]] = None

    # ignore client attempts to set publication fields directly
    model_config = ConfigDict(extra="ignore")


class PaperResponse(BaseModel):
    id: int
    title: str
    abstract: str
    content: Optional[str] = None
    authors: List[str] = []
    author_ids: List[int] = []
    research_field: Optional[str] = None
    keywords: List[str] = []
    status: str
    pdf_url: Optional[str] = None
    doi: Optional[str] = None
    version: int
    is_published: bool
    published_at: Optional[datetime] = None
    journal_id: Optional[int] = None
    story_data: Dict[str, Any] = {}
    view_count: int = 0
    engagement_score: int = 0
    created_by: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaperSummary(BaseModel):
    """Compact paper shape for trending/recommendation lists."""

    id: int
    title: str
    abstract: str
    authors: List[str] = []
    research_field: Optional[str] = None
    view_count: int = 0
    engagement_score: int = 0
    published_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaperListResponse(BaseModel):
    papers: List[PaperResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class PaperVersionResponse(BaseModel):
    id: int
    paper_id: int
    version: int
    title: str
    abstract: str
    content: Optional[str] = None
    pdf_url: Optional[str] = None
    created_by: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VersionDifferences(BaseModel):
    title: bool
    abstract: bool
    content: bool


class VersionCompareResponse(BaseModel):
    version1: PaperVersionResponse
    version2: PaperVersionResponse
    differences: VersionDifferences


class CitationResponse(BaseModel):
    format: str
    citation: str


class PaperViewRequest(BaseModel):
    session_id: Optional[str] = Field(None, max_length=255)
    read_time: Optional[int] = Field(None, ge=0)


class PaperInsightResponse(BaseModel):
    id: int
    paper_id: int
    key_insights: List[Any] = []
    why_it_matters: Optional[str] = None
    real_world_applications: List[Any] = []
    cross_field_connections: List[Any] = []
    impact_score: int = 0

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Comments / reviews
# ---------------------------------------------------------------------------

class CommentCreate(SanitizedModel):
    content: str = Field(..., min_length=1)
    parent_id: Optional[int] = None


class CommentResponse(BaseModel):
    id: int
    paper_id: int
    user_id: int
    content: str
    parent_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewCreate(SanitizedModel):
    content: str = Field(..., min_length=1)
    rating: Optional[int] = Field(None, ge=1, le=5)
    recommendation: Optional[str] = Field(None, max_length=64)


class ReviewResponse(BaseModel):
    id: int
    paper_id: int
    user_id: int
    rating: Optional[int] = None
    content: str
    recommendation: Optional[str] = None
    is_public: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Bookmarks / notifications
# ---------------------------------------------------------------------------

class BookmarkResponse(BaseModel):
    id: int
    paper_id: int
    created_at: datetime
    paper: PaperSummary

    model_config = ConfigDict(from_attributes=True)


class BookmarkStatusResponse(BaseModel):
    paper_id: int
    bookmarked: bool


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    unread: int
    page: int
    total_pages: int


class UnreadCountResponse(BaseModel):
    count: int


# ---------------------------------------------------------------------------
# Claims / dashboard / discovery
# ---------------------------------------------------------------------------

class ClaimRequest(SanitizedModel):
    author_name: Optional[str] = Field(None, max_length=255)
    orcid: Optional[str] = Field(None, max_length=64)


class ClaimResponse(BaseModel):
    success: bool
    claimed_papers: int
    message: str


class PotentialClaim(BaseModel):
    id: int
    title: str
    authors: List[str] = []
    author_ids: List[int] = []
    published_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DashboardResponse(BaseModel):
    total_papers: int
    published_papers: int
    draft_papers: int
    total_views: int
    bookmarks: int
    unread_notifications: int
    recent_papers: List[PaperSummary]


class InteractionCreate(BaseModel):
    paper_id: int
    interaction_type: InteractionTypeSchema
    metadata: Dict[str, Any] = {}


class InteractionResponse(BaseModel):
    id: int
    user_id: int
    paper_id: int
    interaction_type: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TrendingTopicResponse(BaseModel):
    id: int
    topic: str
    field: Optional[str] = None
    momentum: int
    related_paper_ids: List[int] = []
    calculated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JournalResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    issn: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

class ImportArticle(BaseModel):
    """One article in an import file (``[...]`` or ``{"articles": [...]}``)."""

    title: str
    abstract: str
    content: Optional[str] = None
    authors: List[str] = []
    journal: Optional[str] = None
    doi: Optional[str] = None
    published_date: Optional[str] = Field(
        None, validation_alias=AliasChoices("published_date", "publishedDate")
    )
    keywords: List[str] = []
    research_field: Optional[str] = Field(
        None, validation_alias=AliasChoices("research_field", "researchField")
    )
    pdf_url: Optional[str] = Field(None, validation_alias=AliasChoices("pdf_url", "pdfUrl"))
    volume: Optional[str] = None
    issue: Optional[str] = None
    pages: Optional[str] = None
    issn: Optional[str] = None
    subjects: List[str] = []
    external_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("external_id", "externalId")
    )
    source: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class HealthCheckResponse(BaseModel):
    status: str
    database: str
    timestamp: datetime
