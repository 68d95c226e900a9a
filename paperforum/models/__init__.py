"""Database and schema models for PaperForum."""
from paperforum.models.database_models import (
    User,
    Journal,
    Paper,
    PaperVersion,
    Comment,
    Review,
    Bookmark,
    Notification,
    PaperView,
    UserInteraction,
    PaperInsight,
    TrendingTopic,
    PaperStatus,
    NotificationType,
    InteractionType,
)
from paperforum.models.schemas import (
    AuthResponse,
    PaperCreate,
    PaperUpdate,
    PaperResponse,
    CommentResponse,
    ReviewResponse,
    NotificationResponse,
    ImportArticle,
    HealthCheckResponse,
)

__all__ = [
    # Database models
    "User",
    "Journal",
    "Paper",
    "PaperVersion",
    "Comment",
    "Review",
    "Bookmark",
    "Notification",
    "PaperView",
    "UserInteraction",
    "PaperInsight",
    "TrendingTopic",
    "PaperStatus",
    "NotificationType",
    "InteractionType",
    # Pydantic schemas
    "AuthResponse",
    "PaperCreate",
    "PaperUpdate",
    "PaperResponse",
    "CommentResponse",
    "ReviewResponse",
    "NotificationResponse",
    "ImportArticle",
    "HealthCheckResponse",
]
