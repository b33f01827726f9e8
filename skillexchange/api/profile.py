from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from skillexchange.database import get_db
from skillexchange.models.user import User
from skillexchange.schemas.profile import (
    ProfileUpdate,
    ProfileResponse,
    ProgressResponse,
    BadgeTierResponse
)
from skillexchange.services import badge_service, profile_service, progress_service
from skillexchange.utils.security import get_current_user

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return profile_service.get_profile(db, current_user)


@router.put("/me", response_model=ProfileResponse)
def update_my_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return profile_service.update_profile(
        db,
        current_user,
        bio=payload.bio,
        teach_skills=payload.teach_skills,
        learn_skills=payload.learn_skills,
    )


@router.get("/me/progress", response_model=ProgressResponse)
def get_my_progress(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return progress_service.get_progress(db, current_user)


@router.get("/badges", response_model=List[BadgeTierResponse])
def list_badge_tiers():
    return [
        {
            "level": tier.level,
            "name": tier.name,
            "sessions_required": tier.sessions_required,
            "credits_required": tier.credits_required,
        }
        for tier in badge_service.BADGE_TIERS
    ]
