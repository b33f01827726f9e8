# skillexchange/services/feedback_service.py
"""
Feedback & Credit Engine

A learner rates a completed session once. The teacher earns credits from a
fixed formula over hours, group size, rating and comment sentiment; the
learner's learned hours grow by the hours taught.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from skillexchange import models
from skillexchange.crud import feedback as feedback_crud
from skillexchange.crud import report as report_crud
from skillexchange.crud import session as session_crud
from skillexchange.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from skillexchange.models.session import MarkKind, SessionStatus
from skillexchange.services import badge_service, profile_service
from skillexchange.services.notification_service import NotificationEvent, emit
from skillexchange.services.sentiment import SentimentAnalyzer, get_sentiment_analyzer

logger = logging.getLogger(__name__)

FEEDBACK_LIST_TYPES = ("received", "given", "pending")


@dataclass(frozen=True)
class CreditBreakdown:
    base: float
    participant_bonus: float
    rating_factor: float
    sentiment_bonus: float

    @property
    def total(self) -> float:
        return max(0.0, self.base + self.participant_bonus + self.rating_factor + self.sentiment_bonus)


def sentiment_bonus(score: int) -> int:
    if score > 0:
        return 6
    if score == 0:
        return 3
    return -6


def calculate_credits(
    hours_taught: float,
    participant_count: int,
    rating: float,
    sentiment_score: int,
) -> CreditBreakdown:
    """
    Credits for one feedback.

    >>> calculate_credits(2, 1, 5, 4).total
    37.0
    """
    base = hours_taught * 2
    if participant_count == 1:
        participant_bonus = 2
    else:
        participant_bonus = 2 + (participant_count - 1) * 3
    rating_factor = rating * 5
    if rating < 0.1:
        rating_factor = 0.5
    return CreditBreakdown(
        base=float(base),
        participant_bonus=float(participant_bonus),
        rating_factor=float(rating_factor),
        sentiment_bonus=float(sentiment_bonus(sentiment_score)),
    )


def _validate_input(rating: Any, comment: Optional[str], hours_taught: Any) -> None:
    if rating is None or comment is None or hours_taught is None:
        raise ValidationError("Missing required fields: rating, comment, hours_taught")
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5")
    if not comment.strip():
        raise ValidationError("Comment cannot be empty")
    try:
        hours = float(hours_taught)
    except (TypeError, ValueError):
        raise ValidationError("hours_taught must be a number")
    if not math.isfinite(hours) or hours <= 0:
        raise ValidationError("hours_taught must be a finite number greater than 0")


def serialize_feedback(feedback: models.Feedback) -> Dict[str, Any]:
    session = feedback.session
    return {
        "id": feedback.id,
        "session_id": feedback.session_id,
        "learner_id": feedback.learner_id,
        "learner_name": feedback.learner.name if feedback.learner else None,
        "teacher_id": feedback.teacher_id,
        "teacher_name": feedback.teacher.name if feedback.teacher else None,
        "skill": session.skill if session else None,
        "rating": feedback.rating,
        "comment": feedback.comment,
        "hours_taught": feedback.hours_taught,
        "credits_awarded": feedback.credits_awarded,
        "created_at": feedback.created_at,
        "updated_at": feedback.updated_at,
    }


def submit_feedback(
    db: Session,
    learner: models.User,
    session_id: int,
    *,
    rating: int,
    comment: str,
    hours_taught: float,
    analyzer: Optional[SentimentAnalyzer] = None,
) -> Dict[str, Any]:
    """
    Record a learner's feedback and credit the teacher.

    Raises:
        ValidationError: bad rating, empty comment or non-positive hours
        NotFoundError: unknown session
        ForbiddenError: caller is not a learner of the session
        ConflictError: learner's portion not completed, or already submitted
    """
    _validate_input(rating, comment, hours_taught)
    hours_taught = float(hours_taught)

    session = session_crud.get_session_for_update(db, session_id)
    if not session:
        raise NotFoundError("Session not found", extra={"session_id": session_id})
    if session.is_teacher(learner.id) or not session.is_participant(learner.id):
        raise ForbiddenError("You can only give feedback for sessions you participated in")
    if (
        session.status != SessionStatus.COMPLETED.value
        and learner.id not in session.completed_participant_ids
    ):
        raise ConflictError("Session must be completed before giving feedback")

    if feedback_crud.get_feedback_for(db, session.id, learner.id):
        # heal a missing overlay entry left by an interrupted earlier submission
        if session_crud.add_mark(db, session, learner.id, MarkKind.FEEDBACK_GIVEN):
            db.commit()
        raise ConflictError("Feedback already submitted for this session")

    analyzer = analyzer or get_sentiment_analyzer()
    score = analyzer.analyze(comment).score
    participant_count = len(session.active_participant_ids) or 1
    credits = calculate_credits(hours_taught, participant_count, rating, score)

    try:
        feedback = feedback_crud.create_feedback(
            db,
            session_id=session.id,
            learner_id=learner.id,
            teacher_id=session.teacher_id,
            rating=rating,
            comment=comment.strip(),
            hours_taught=hours_taught,
        )
    except IntegrityError:
        db.rollback()
        raise ConflictError("Feedback already submitted for this session")

    feedback.credits_awarded = credits.total
    profile_service.add_credits(db, session.teacher_id, credits.total)
    profile_service.add_learned_hours(db, learner.id, hours_taught)

    session_crud.add_mark(db, session, learner.id, MarkKind.FEEDBACK_GIVEN)
    given = session.feedback_given_by
    if all(pid in given for pid in session.active_participant_ids):
        session.feedback_given = True

    badges = badge_service.evaluate_badges(db, session.teacher_id)
    teacher_id = session.teacher_id
    skill = session.skill
    db.commit()
    db.refresh(feedback)

    logger.info(
        "Feedback credited (session_id=%s, learner_id=%s, teacher_id=%s, credits=%s)",
        session_id, learner.id, teacher_id, credits.total,
    )

    events = [
        NotificationEvent(
            recipient_id=teacher_id,
            event_type="feedback_received",
            message=(
                f"{learner.name} left {rating}-star feedback for your {skill} session. "
                f"You earned {credits.total:g} credits."
            ),
            session_id=session_id,
            actor_id=learner.id,
        )
    ]
    events.extend(
        NotificationEvent(
            recipient_id=teacher_id,
            event_type="badge_earned",
            message=f"Congratulations! You earned the {name} badge.",
            session_id=session_id,
            actor_id=learner.id,
        )
        for name in badges
    )
    emit(db, events)

    result = serialize_feedback(feedback)
    result["credits_breakdown"] = {
        "base": credits.base,
        "participant_bonus": credits.participant_bonus,
        "rating_factor": credits.rating_factor,
        "sentiment_bonus": credits.sentiment_bonus,
    }
    result["badges_earned"] = badges
    return result


def update_feedback(
    db: Session,
    learner: models.User,
    feedback_id: int,
    *,
    rating: Optional[int] = None,
    comment: Optional[str] = None,
    hours_taught: Optional[float] = None,
) -> Dict[str, Any]:
    """Revise an own feedback. Credits already awarded are left untouched."""
    feedback = feedback_crud.get_feedback_by_id(db, feedback_id)
    if not feedback:
        raise NotFoundError("Feedback not found", extra={"feedback_id": feedback_id})
    if feedback.learner_id != learner.id:
        raise ForbiddenError("You can only update your own feedback")

    _validate_input(
        feedback.rating if rating is None else rating,
        feedback.comment if comment is None else comment,
        feedback.hours_taught if hours_taught is None else hours_taught,
    )
    if rating is not None:
        feedback.rating = rating
    if comment is not None:
        feedback.comment = comment.strip()
    if hours_taught is not None:
        feedback.hours_taught = float(hours_taught)

    db.commit()
    db.refresh(feedback)
    logger.info("Feedback updated (feedback_id=%s, learner_id=%s)", feedback.id, learner.id)
    return serialize_feedback(feedback)


def _pending_for(db: Session, learner: models.User) -> List[Dict[str, Any]]:
    rows = []
    for session in session_crud.list_completed_sessions_as_learner(db, learner.id):
        if learner.id in session.feedback_given_by:
            continue
        if feedback_crud.get_feedback_for(db, session.id, learner.id):
            continue
        rows.append({
            "session_id": session.id,
            "teacher_id": session.teacher_id,
            "teacher_name": session.teacher.name if session.teacher else None,
            "skill": session.skill,
            "date": session.date.isoformat(),
            "time": session.time,
        })
    return rows


def list_feedbacks(db: Session, user: models.User, list_type: str = "received") -> List[Dict[str, Any]]:
    if list_type == "received":
        return [serialize_feedback(f) for f in feedback_crud.get_feedbacks_received(db, user.id)]
    if list_type == "given":
        return [serialize_feedback(f) for f in feedback_crud.get_feedbacks_given(db, user.id)]
    if list_type == "pending":
        return _pending_for(db, user)
    raise ValidationError("Invalid type. Use: received, given, or pending")


def report_feedback(
    db: Session,
    teacher: models.User,
    feedback_id: int,
    *,
    reason: str,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """A teacher flags a feedback they received; files a report against its author."""
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A reason is required")

    feedback = feedback_crud.get_feedback_by_id(db, feedback_id)
    if not feedback:
        raise NotFoundError("Feedback not found", extra={"feedback_id": feedback_id})
    if feedback.teacher_id != teacher.id:
        raise ForbiddenError("You can only report feedback you received")

    report = report_crud.create_report(
        db,
        reporter_id=teacher.id,
        reported_user_id=feedback.learner_id,
        reason=reason[:500],
        description=description or f"Reported feedback #{feedback.id} on session #{feedback.session_id}",
    )
    db.commit()
    logger.warning(
        "Feedback reported (feedback_id=%s, reporter_id=%s, report_id=%s)",
        feedback.id, teacher.id, report.id,
    )
    return {"message": "Feedback reported", "report_id": report.id, "status": report.status}
