"""
SQLAlchemy ORM models for the PaperForum database.

Papers carry two author representations: ``authors`` is the free-text list
shown on the paper, ``author_ids`` the platform users associated with it.
Nothing links the two; the claim service maintains ``author_ids``.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Boolean,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from paperforum.database import Base


# Enums
class PaperStatus(str, enum.Enum):
    """Lifecycle states of a paper."""

    DRAFT = "draft"
    PUBLISHED = "published"
    IN_REVIEW = "in_review"


class NotificationType(str, enum.Enum):
    """Kinds of notifications created by the API."""

    PAPER_PUBLISHED = "paper_published"
    NEW_COMMENT = "new_comment"
    NEW_REVIEW = "new_review"
    REVIEW_REQUESTED = "review_requested"


class InteractionType(str, enum.Enum):
    """User interactions that feed engagement scores."""

    VIEW = "view"
    LIKE = "like"
    SHARE = "share"
    SAVE = "save"
    COMMENT = "comment"


# Models
class User(Base):
    """Registered platform user."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)  # werkzeug hash
    name = Column(String(255), nullable=False)
    orcid = Column(String(64), nullable=True)
    affiliation = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    papers = relationship("Paper", back_populates="creator", passive_deletes=True)


class Journal(Base):
    """Journal a paper was published in (mostly populated by importers)."""

    __tablename__ = "journals"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    issn = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    papers = relationship("Paper", back_populates="journal")


class Paper(Base):
    """A user-authored or imported research article."""

    __tablename__ = "papers"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False)
    abstract = Column(Text, nullable=False)
    content = Column(Text, nullable=True)
    authors = Column(JSON, nullable=False, default=list)  # free-text names
    author_ids = Column(JSON, nullable=False, default=list)  # platform user ids
    research_field = Column(String(255), nullable=True, index=True)
    keywords = Column(JSON, nullable=False, default=list)
    status = Column(String(32), nullable=False, default=PaperStatus.DRAFT.value)
    pdf_url = Column(Text, nullable=True)
    doi = Column(String(255), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    is_published = Column(Boolean, nullable=False, default=False, index=True)
    published_at = Column(DateTime(timezone=True), nullable=True, index=True)
    journal_id = Column(Integer, ForeignKey("journals.id", ondelete="SET NULL"), nullable=True)

    # Research Story: {"general": ..., "intermediate": ..., "expert": ...}
    story_data = Column(JSON, nullable=False, default=dict)

    view_count = Column(Integer, nullable=False, default=0)
    engagement_score = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    creator = relationship("User", back_populates="papers")
    journal = relationship("Journal", back_populates="papers")
    versions = relationship(
        "PaperVersion", back_populates="paper", cascade="all, delete-orphan", passive_deletes=True
    )
    comments = relationship(
        "Comment", back_populates="paper", cascade="all, delete-orphan", passive_deletes=True
    )
    reviews = relationship(
        "Review", back_populates="paper", cascade="all, delete-orphan", passive_deletes=True
    )
    bookmarks = relationship(
        "Bookmark", back_populates="paper", cascade="all, delete-orphan", passive_deletes=True
    )
    views = relationship("PaperView", cascade="all, delete-orphan", passive_deletes=True)
    interactions = relationship("UserInteraction", cascade="all, delete-orphan", passive_deletes=True)
    insights = relationship("PaperInsight", cascade="all, delete-orphan", passive_deletes=True)


class PaperVersion(Base):
    """Snapshot of a paper taken when it is (re)published or restored."""

    __tablename__ = "paper_versions"

    id = Column(Integer, primary_key=True, index=True)
    paper_id = Column(Integer, ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    title = Column(Text, nullable=False)
    abstract = Column(Text, nullable=False)
    content = Column(Text, nullable=True)
    pdf_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    paper = relationship("Paper", back_populates="versions")


class Comment(Base):
    """Threaded discussion comment on a published paper."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    paper_id = Column(Integer, ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    paper = relationship("Paper", back_populates="comments")
    user = relationship("User")


class Review(Base):
    """Public review of a published paper."""

    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    paper_id = Column(Integer, ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=True)  # 1-5
    content = Column(Text, nullable=False)
    recommendation = Column(String(64), nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    paper = relationship("Paper", back_populates="reviews")
    user = relationship("User")


class Bookmark(Base):
    """A paper saved by a user."""

    __tablename__ = "bookmarks"
    __table_args__ = (UniqueConstraint("user_id", "paper_id", name="uq_bookmarks_user_paper"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    paper_id = Column(Integer, ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    paper = relationship("Paper", back_populates="bookmarks")


class Notification(Base):
    """In-app notification addressed to a single user."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(64), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    entity_type = Column(String(64), nullable=True)
    entity_id = Column(Integer, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class PaperView(Base):
    """One recorded read of a paper, anonymous or authenticated."""

    __tablename__ = "paper_views"

    id = Column(Integer, primary_key=True, index=True)
    paper_id = Column(Integer, ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    session_id = Column(String(255), nullable=True)
    read_time_seconds = Column(Integer, nullable=True)
    viewed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class UserInteraction(Base):
    """Weighted user interaction used for recommendations."""

    __tablename__ = "user_interactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    paper_id = Column(Integer, ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True)
    interaction_type = Column(String(32), nullable=False)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class PaperInsight(Base):
    """Editorial insights shown alongside a paper's Research Story."""

    __tablename__ = "paper_insights"

    id = Column(Integer, primary_key=True, index=True)
    paper_id = Column(Integer, ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True)
    key_insights = Column(JSON, nullable=False, default=list)
    why_it_matters = Column(Text, nullable=True)
    real_world_applications = Column(JSON, nullable=False, default=list)
    cross_field_connections = Column(JSON, nullable=False, default=list)
    impact_score = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class TrendingTopic(Base):
    """Research field momentum, recomputed by a background job."""

    __tablename__ = "trending_topics"

    id = Column(Integer, primary_key=True, index=True)
    topic = Column(String(255), nullable=False, unique=True)
    field = Column(String(255), nullable=True)
    momentum = Column(Integer, nullable=False, default=0)
    related_paper_ids = Column(JSON, nullable=False, default=list)
    calculated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
