# skillexchange/api/feedback.py
"""
Feedback API Router

Endpoints:
- POST /feedback/ - Rate a completed session (credits the teacher)
- GET /feedback/?type=received|given|pending - My feedback lists
- PUT /feedback/{feedback_id} - Revise my feedback
- POST /feedback/report - Report a feedback I received
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from skillexchange.database import get_db
from skillexchange.models.user import User
from skillexchange.schemas.feedback import (
    FeedbackCreate,
    FeedbackUpdate,
    FeedbackReport,
    FeedbackResponse,
    FeedbackSubmitResponse,
    FeedbackReportResponse
)
from skillexchange.services import feedback_service
from skillexchange.utils.security import get_current_user

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post("/", response_model=FeedbackSubmitResponse, status_code=201)
def submit_feedback(
    payload: FeedbackCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Submit feedback for a session you learned in.

    Requirements:
    - Your part of the session is completed
    - Only one feedback per session
    - Rating 1-5, hours taught > 0
    """
    return feedback_service.submit_feedback(
        db,
        current_user,
        payload.session_id,
        rating=payload.rating,
        comment=payload.comment,
        hours_taught=payload.hours_taught,
    )


@router.get("/")
def list_feedback(
    type: str = Query("received", description="received | given | pending"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return feedback_service.list_feedbacks(db, current_user, type)


@router.put("/{feedback_id}", response_model=FeedbackResponse)
def update_feedback(
    feedback_id: int,
    payload: FeedbackUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Credits already awarded are not recalculated."""
    return feedback_service.update_feedback(
        db,
        current_user,
        feedback_id,
        rating=payload.rating,
        comment=payload.comment,
        hours_taught=payload.hours_taught,
    )


@router.post("/report", response_model=FeedbackReportResponse, status_code=201)
def report_feedback(
    payload: FeedbackReport,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return feedback_service.report_feedback(
        db,
        current_user,
        payload.feedback_id,
        reason=payload.reason,
        description=payload.description,
    )
