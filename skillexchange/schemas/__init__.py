# skillexchange/schemas/__init__.py

# Session schemas
from .session import (
    SessionCreate,
    SessionCreated,
    SessionView,
    SessionActionResponse,
    MeetingDetails,
    MasteryClaimResponse
)

# Feedback schemas
from .feedback import (
    FeedbackCreate,
    FeedbackUpdate,
    FeedbackReport,
    FeedbackResponse,
    FeedbackSubmitResponse,
    PendingFeedback,
    FeedbackReportResponse
)

# Profile schemas
from .profile import (
    ProfileUpdate,
    ProfileResponse,
    ProgressResponse,
    SkillProgress,
    BadgeTierResponse
)

__all__ = [
    "SessionCreate",
    "SessionCreated",
    "SessionView",
    "SessionActionResponse",
    "MeetingDetails",
    "MasteryClaimResponse",
    "FeedbackCreate",
    "FeedbackUpdate",
    "FeedbackReport",
    "FeedbackResponse",
    "FeedbackSubmitResponse",
    "PendingFeedback",
    "FeedbackReportResponse",
    "ProfileUpdate",
    "ProfileResponse",
    "ProgressResponse",
    "SkillProgress",
    "BadgeTierResponse"
]
