# skillexchange/crud/feedback.py
"""
Feedback CRUD Operations
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from skillexchange.models.feedback import Feedback
from skillexchange.models.session import Session as SessionModel


def create_feedback(
    db: Session,
    *,
    session_id: int,
    learner_id: int,
    teacher_id: int,
    rating: int,
    comment: str,
    hours_taught: float,
) -> Feedback:
    """
    Insert a feedback row.

    The (session_id, learner_id) unique constraint raises IntegrityError on
    flush if a concurrent submission got there first.
    """
    feedback = Feedback(
        session_id=session_id,
        learner_id=learner_id,
        teacher_id=teacher_id,
        rating=rating,
        comment=comment,
        hours_taught=hours_taught,
    )
    db.add(feedback)
    db.flush()
    return feedback


def get_feedback_by_id(db: Session, feedback_id: int) -> Optional[Feedback]:
    return db.query(Feedback).filter(Feedback.id == feedback_id).first()


def get_feedback_for(db: Session, session_id: int, learner_id: int) -> Optional[Feedback]:
    return db.query(Feedback).filter(
        Feedback.session_id == session_id,
        Feedback.learner_id == learner_id,
    ).first()


def get_feedbacks_received(db: Session, teacher_id: int) -> List[Feedback]:
    return (
        db.query(Feedback)
        .filter(Feedback.teacher_id == teacher_id)
        .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        .all()
    )


def get_feedbacks_given(db: Session, learner_id: int) -> List[Feedback]:
    return (
        db.query(Feedback)
        .filter(Feedback.learner_id == learner_id)
        .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        .all()
    )


def get_learner_feedbacks_with_skill(db: Session, learner_id: int):
    """(skill, hours_taught, session_id) for every feedback the learner wrote."""
    return (
        db.query(SessionModel.skill, Feedback.hours_taught, Feedback.session_id)
        .join(SessionModel, SessionModel.id == Feedback.session_id)
        .filter(Feedback.learner_id == learner_id)
        .all()
    )
