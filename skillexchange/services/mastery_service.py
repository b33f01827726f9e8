# skillexchange/services/mastery_service.py
"""
Skill Mastery Claim

A learner may declare, once per session, that the session taught them the
skill to completion. The claim needs the learner's own completion and
feedback first.
"""

import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from skillexchange import models
from skillexchange.crud import feedback as feedback_crud
from skillexchange.crud import session as session_crud
from skillexchange.exceptions import ConflictError, ForbiddenError, NotFoundError
from skillexchange.models.session import MarkKind, SessionStatus
from skillexchange.services import profile_service

logger = logging.getLogger(__name__)


def claim_mastery(db: Session, learner: models.User, session_id: int) -> Dict[str, Any]:
    session = session_crud.get_session_for_update(db, session_id)
    if not session:
        raise NotFoundError("Session not found", extra={"session_id": session_id})
    if session.is_teacher(learner.id) or not session.is_participant(learner.id):
        raise ForbiddenError("Only learners of this session can claim the skill")
    if (
        session.status != SessionStatus.COMPLETED.value
        and learner.id not in session.completed_participant_ids
    ):
        raise ConflictError("Session must be completed before claiming the skill")

    has_feedback = (
        learner.id in session.feedback_given_by
        or feedback_crud.get_feedback_for(db, session.id, learner.id) is not None
    )
    if not has_feedback:
        raise ConflictError("Give feedback for this session before claiming the skill")
    if learner.id in session.skill_claimed_by:
        raise ConflictError("Skill already claimed for this session")

    session_crud.add_mark(db, session, learner.id, MarkKind.SKILL_CLAIMED)
    claimed = session.skill_claimed_by
    if all(pid in claimed for pid in session.active_participant_ids):
        session.skill_claimed = True

    profile = profile_service.increment_skills_mastered(db, learner.id)
    skills_mastered = profile.skills_mastered
    skill = session.skill
    db.commit()

    logger.info(
        "Mastery claimed (session_id=%s, learner_id=%s, skill=%s)",
        session_id, learner.id, skill,
    )
    return {
        "message": f"Skill '{skill}' marked as mastered",
        "session_id": session_id,
        "skill": skill,
        "skills_mastered": skills_mastered,
    }
