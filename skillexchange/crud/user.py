from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from skillexchange import models


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()


def get_users_by_ids(db: Session, user_ids: Iterable[int]) -> List[models.User]:
    user_ids = list(user_ids)
    if not user_ids:
        return []
    return db.query(models.User).filter(models.User.id.in_(user_ids)).all()


def get_profile(db: Session, user_id: int) -> Optional[models.Profile]:
    return db.query(models.Profile).filter(models.Profile.user_id == user_id).first()


def get_or_create_profile(db: Session, user_id: int) -> models.Profile:
    profile = get_profile(db, user_id)
    if profile:
        return profile
    profile = models.Profile(
        user_id=user_id,
        teach_skills=[],
        learn_skills=[],
        badges=[],
        credits=0.0,
        total_learned_hours=0.0,
        skills_mastered=0,
    )
    db.add(profile)
    db.flush()
    return profile


# ---------------- FRIENDSHIP ----------------

def are_friends(db: Session, user_a: int, user_b: int) -> bool:
    """Mutual friendship: both directions must be recorded."""
    count = db.query(models.Friendship).filter(
        ((models.Friendship.user_id == user_a) & (models.Friendship.friend_id == user_b))
        | ((models.Friendship.user_id == user_b) & (models.Friendship.friend_id == user_a))
    ).count()
    return count == 2


def add_friendship(db: Session, user_a: int, user_b: int) -> None:
    for left, right in ((user_a, user_b), (user_b, user_a)):
        exists = db.query(models.Friendship.id).filter(
            models.Friendship.user_id == left,
            models.Friendship.friend_id == right,
        ).first()
        if not exists:
            db.add(models.Friendship(user_id=left, friend_id=right))
    db.flush()
