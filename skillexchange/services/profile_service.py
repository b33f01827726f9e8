# skillexchange/services/profile_service.py
"""
Reputation ledger.

Credits and badges are written by the feedback flow, learned hours by the
learner's own feedback, and the mastery counter by mastery claims. Nothing
here subtracts from the ledger.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from skillexchange import models
from skillexchange.crud import user as user_crud
from skillexchange.exceptions import ValidationError

logger = logging.getLogger(__name__)


def add_credits(db: Session, user_id: int, amount: float) -> models.Profile:
    if amount < 0:
        raise ValidationError("Credit awards cannot be negative")
    profile = user_crud.get_or_create_profile(db, user_id)
    profile.credits = (profile.credits or 0.0) + amount
    return profile


def add_learned_hours(db: Session, user_id: int, hours: float) -> models.Profile:
    profile = user_crud.get_or_create_profile(db, user_id)
    profile.total_learned_hours = (profile.total_learned_hours or 0.0) + hours
    return profile


def increment_skills_mastered(db: Session, user_id: int) -> models.Profile:
    profile = user_crud.get_or_create_profile(db, user_id)
    profile.skills_mastered = (profile.skills_mastered or 0) + 1
    return profile


def grant_badges(profile: models.Profile, badge_names: List[str]) -> List[str]:
    """Append badges not yet held; returns the ones actually added."""
    held = set(profile.badges or [])
    added = [name for name in badge_names if name not in held]
    if added:
        if profile.badges is None:
            profile.badges = []
        profile.badges.extend(added)
    return added


def serialize_profile(user: models.User, profile: models.Profile) -> Dict[str, Any]:
    return {
        "user_id": user.id,
        "name": user.name,
        "email": user.email,
        "bio": profile.bio,
        "teach_skills": list(profile.teach_skills or []),
        "learn_skills": list(profile.learn_skills or []),
        "credits": profile.credits or 0.0,
        "total_learned_hours": profile.total_learned_hours or 0.0,
        "skills_mastered": profile.skills_mastered or 0,
        "badges": list(profile.badges or []),
    }


def get_profile(db: Session, user: models.User) -> Dict[str, Any]:
    profile = user_crud.get_or_create_profile(db, user.id)
    db.commit()
    return serialize_profile(user, profile)


def update_profile(
    db: Session,
    user: models.User,
    *,
    bio: Optional[str] = None,
    teach_skills: Optional[List[str]] = None,
    learn_skills: Optional[List[str]] = None,
) -> Dict[str, Any]:
    profile = user_crud.get_or_create_profile(db, user.id)

    if bio is not None:
        bio = bio.strip()
        if len(bio) < 20 or len(bio) > 500:
            raise ValidationError("Bio must be between 20 and 500 characters")
        profile.bio = bio
    if teach_skills is not None:
        cleaned = _clean_skills(teach_skills)
        if not cleaned:
            raise ValidationError("At least one skill to teach is required")
        profile.teach_skills = cleaned
    if learn_skills is not None:
        cleaned = _clean_skills(learn_skills)
        if not cleaned:
            raise ValidationError("At least one skill to learn is required")
        profile.learn_skills = cleaned

    db.commit()
    db.refresh(profile)
    logger.info("Profile updated (user_id=%s)", user.id)
    return serialize_profile(user, profile)


def _clean_skills(skills: List[str]) -> List[str]:
    seen = []
    for skill in skills:
        skill = (skill or "").strip()
        if skill and skill not in seen:
            seen.append(skill)
    return seen
