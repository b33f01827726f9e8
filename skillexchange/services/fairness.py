# skillexchange/services/fairness.py
"""
Fairness Guard

Anti-abuse checks run before a session is created:
- teacher and every participant are mutual friends
- the teacher declares the skill as teachable
- no active report exists between teacher and any participant
- no consecutive same-direction, same-skill teaching with a participant
"""

import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from skillexchange import models
from skillexchange.crud import report as report_crud
from skillexchange.crud import session as session_crud
from skillexchange.crud import user as user_crud
from skillexchange.exceptions import ConflictError, ForbiddenError

logger = logging.getLogger(__name__)


def is_consecutive_repeat(
    last_session: Optional[models.Session],
    teacher_id: int,
    skill: str,
) -> bool:
    """
    True when the latest completed session between the pair had this teacher
    teaching this same skill.

    Reciprocal teaching (the other party taught last) and a different skill
    are always allowed.
    """
    if last_session is None:
        return False
    if last_session.teacher_id != teacher_id:
        return False
    return bool(last_session.skill) and last_session.skill == skill


def check_consecutive_teaching(
    db: Session,
    teacher_id: int,
    participant: models.User,
    skill: str,
) -> None:
    last_session = session_crud.last_completed_between(db, teacher_id, participant.id)
    if is_consecutive_repeat(last_session, teacher_id, skill):
        logger.warning(
            "Fairness block (teacher_id=%s, participant_id=%s, skill=%s, last_session_id=%s)",
            teacher_id, participant.id, skill, last_session.id,
        )
        raise ConflictError(
            f"Cannot schedule two consecutive teaching sessions of the same skill with "
            f"{participant.name or 'this user'}. Try a different skill or wait until another session occurs.",
            extra={"participant_id": participant.id, "last_session_id": last_session.id},
        )


def guard_session_proposal(
    db: Session,
    teacher: models.User,
    participants: Sequence[models.User],
    skill: str,
) -> None:
    """Raise ForbiddenError/ConflictError if the proposal breaks any rule."""
    for participant in participants:
        if not user_crud.are_friends(db, teacher.id, participant.id):
            raise ForbiddenError("You can only schedule sessions with your friends")

    profile = user_crud.get_profile(db, teacher.id)
    if profile is None or skill not in (profile.teach_skills or []):
        raise ForbiddenError("You can only schedule sessions for skills you can teach")

    for participant in participants:
        if report_crud.has_active_report(db, teacher.id, participant.id):
            raise ForbiddenError(
                "Cannot schedule session: one or more participants have an active report conflict with you."
            )

    for participant in participants:
        check_consecutive_teaching(db, teacher.id, participant, skill)
