# skillexchange/services/badge_service.py
"""
Badge Engine

Badges are milestone awards on (completed taught sessions, credit balance).
Tiers live in a static table; evaluation checks every tier and only ever
adds badges.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from sqlalchemy.orm import Session

from skillexchange.crud import session as session_crud
from skillexchange.crud import user as user_crud
from skillexchange.services import profile_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeTier:
    level: int
    name: str
    sessions_required: int
    credits_required: int


BADGE_TIERS: Tuple[BadgeTier, ...] = (
    BadgeTier(1, "Beginner", 10, 100),
    BadgeTier(2, "Quick Learner", 50, 500),
    BadgeTier(3, "Rising Star", 100, 1000),
    BadgeTier(4, "Skill Seeker", 200, 2000),
    BadgeTier(5, "Skillful", 350, 3500),
    BadgeTier(6, "Knowledge Explorer", 500, 5000),
    BadgeTier(7, "Pro", 700, 7000),
    BadgeTier(8, "Bright Mind", 900, 9000),
    BadgeTier(9, "Expert", 1200, 12000),
    BadgeTier(10, "Champion", 1500, 15000),
    BadgeTier(11, "Wisdom Keeper", 1800, 18000),
    BadgeTier(12, "Mentor Guide", 2100, 21000),
    BadgeTier(13, "Insight Leader", 2400, 24000),
    BadgeTier(14, "Legend", 2700, 27000),
    BadgeTier(15, "Skill Champion", 3000, 30000),
    BadgeTier(16, "Knowledge Sage", 3300, 33000),
    BadgeTier(17, "Visionary", 3600, 36000),
    BadgeTier(18, "Skill Titan", 4000, 40000),
    BadgeTier(19, "Phoenix Mentor", 4500, 45000),
    BadgeTier(20, "Legendary", 5000, 50000),
)


def eligible_badges(sessions_done: int, credits: float) -> List[str]:
    """Names of every tier whose two thresholds are both met."""
    return [
        tier.name
        for tier in BADGE_TIERS
        if sessions_done >= tier.sessions_required and credits >= tier.credits_required
    ]


def evaluate_badges(db: Session, teacher_id: int) -> List[str]:
    """
    Grant any newly reached badges to a teacher.

    Idempotent: running it again without new sessions or credits adds nothing.
    Returns the badge names granted by this call.
    """
    profile = user_crud.get_or_create_profile(db, teacher_id)
    sessions_done = session_crud.count_completed_taught(db, teacher_id)
    granted = profile_service.grant_badges(
        profile, eligible_badges(sessions_done, profile.credits or 0.0)
    )
    if granted:
        logger.info(
            "Badges granted (teacher_id=%s, sessions=%s, credits=%s): %s",
            teacher_id, sessions_done, profile.credits, ", ".join(granted),
        )
    return granted
