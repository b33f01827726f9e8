# skillexchange/services/progress_service.py
"""
Progress aggregation for a learner's dashboard. Nothing here writes
except the shared expiry sweep.
"""

from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from skillexchange import models
from skillexchange.config import settings
from skillexchange.crud import feedback as feedback_crud
from skillexchange.crud import session as session_crud
from skillexchange.crud import user as user_crud
from skillexchange.services import session_service


def skill_progress(hours: float, target_hours: Optional[float] = None) -> float:
    """Percentage towards mastery, capped at 100."""
    target = target_hours or settings.MASTERY_TARGET_HOURS
    return round(min(hours * 100 / target, 100.0), 2)


def in_progress_skills(
    hours_by_skill: Dict[str, float],
    mastered: List[str],
) -> List[Dict[str, Any]]:
    rows = []
    for skill, hours in hours_by_skill.items():
        if skill in mastered:
            continue
        rows.append({"skill": skill, "hours": hours, "progress": skill_progress(hours)})
    return rows


def get_progress(db: Session, user: models.User, now: Optional[datetime] = None) -> Dict[str, Any]:
    session_service.expire_stale_sessions(db, now)
    profile = user_crud.get_profile(db, user.id)

    mastered: List[str] = []
    for session in session_crud.list_claimed_sessions(db, user.id):
        if session.skill and session.skill not in mastered:
            mastered.append(session.skill)

    hours_by_skill: Dict[str, float] = OrderedDict()
    for skill, hours, _session_id in feedback_crud.get_learner_feedbacks_with_skill(db, user.id):
        if not skill:
            continue
        hours_by_skill[skill] = hours_by_skill.get(skill, 0.0) + float(hours or 0.0)

    return {
        "user_id": user.id,
        "total_learned_hours": profile.total_learned_hours if profile else 0.0,
        "sessions_taught": session_crud.count_completed_taught(db, user.id),
        "sessions_learned": len(session_crud.list_completed_sessions_as_learner(db, user.id)),
        "credits": profile.credits if profile else 0.0,
        "badges": list(profile.badges or []) if profile else [],
        "skills_mastered": profile.skills_mastered if profile else 0,
        "mastered_skills": mastered,
        "in_progress": in_progress_skills(hours_by_skill, mastered),
    }
