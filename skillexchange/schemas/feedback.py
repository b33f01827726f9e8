from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

# ======================
# FEEDBACK REQUEST MODELS
# ======================

class FeedbackCreate(BaseModel):
    session_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=2000)
    hours_taught: float = Field(..., gt=0, allow_inf_nan=False)


class FeedbackUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=1, max_length=2000)
    hours_taught: Optional[float] = Field(None, gt=0, allow_inf_nan=False)


class FeedbackReport(BaseModel):
    feedback_id: int
    reason: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None

# ======================
# FEEDBACK RESPONSE MODELS
# ======================

class FeedbackResponse(BaseModel):
    id: int
    session_id: int
    learner_id: int
    learner_name: Optional[str] = None
    teacher_id: int
    teacher_name: Optional[str] = None
    skill: Optional[str] = None
    rating: int
    comment: str
    hours_taught: float
    credits_awarded: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CreditsBreakdown(BaseModel):
    base: float
    participant_bonus: float
    rating_factor: float
    sentiment_bonus: float


class FeedbackSubmitResponse(FeedbackResponse):
    credits_breakdown: CreditsBreakdown
    badges_earned: List[str] = []


class PendingFeedback(BaseModel):
    session_id: int
    teacher_id: int
    teacher_name: Optional[str] = None
    skill: str
    date: str
    time: str


class FeedbackReportResponse(BaseModel):
    message: str
    report_id: int
    status: str
