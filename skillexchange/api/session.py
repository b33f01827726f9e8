# skillexchange/api/session.py
"""
Session API Router

Endpoints:
- POST /sessions/ - Schedule a session with one or more friends
- GET /sessions/ - List my sessions (filter, status, search, limit)
- GET /sessions/{session_id} - One session from my point of view
- POST /sessions/{session_id}/join - Join the meeting
- GET /sessions/{session_id}/meeting - Meeting details
- PATCH /sessions/{session_id}/cancel - Cancel (teacher) or leave (learner)
- PATCH /sessions/{session_id}/complete - Mark completed
- DELETE /sessions/{session_id} - Hide from my history
- POST /sessions/{session_id}/claim-mastery - Claim the skill as mastered
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from skillexchange.database import get_db
from skillexchange.models.user import User
from skillexchange.schemas.session import (
    SessionCreate,
    SessionCreated,
    SessionView,
    SessionActionResponse,
    MeetingDetails,
    MasteryClaimResponse
)
from skillexchange.services import mastery_service, session_service
from skillexchange.utils.security import get_current_user

router = APIRouter(prefix="/sessions", tags=["sessions"])


# ======================
# CREATE
# ======================
@router.post("/", response_model=SessionCreated, status_code=201)
def create_session(
    payload: SessionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Schedule a session as the teacher.

    Participants must be friends, the skill must be one you teach, and the
    start must be in the future.
    """
    session = session_service.create_session(
        db,
        current_user,
        participant_ids=session_service.normalize_participant_ids(
            payload.learner_ids, payload.learner_id
        ),
        skill=payload.skill,
        session_date=payload.date,
        time=payload.time,
        duration=payload.duration,
        end_time=payload.end_time,
    )
    return {
        "id": session.id,
        "teacher_id": session.teacher_id,
        "skill": session.skill,
        "date": session.date.isoformat(),
        "time": session.time,
        "start_time": session.start_time,
        "end_time": session.end_time,
        "status": session.status,
        "meeting_room": session.meeting_room,
        "participant_ids": session.active_participant_ids,
    }


# ======================
# LIST / DETAIL
# ======================
@router.get("/", response_model=List[SessionView])
def list_my_sessions(
    filter: str = Query("all", description="all | teaching | learning"),
    status: Optional[str] = Query(None, description="past | upcoming | completed | cancelled_expired"),
    search: Optional[str] = Query(None, description="Match skill or names"),
    limit: Optional[int] = Query(None, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return session_service.list_sessions(
        db,
        current_user,
        role=filter,
        status=status,
        search=search,
        limit=limit,
    )


@router.get("/{session_id}", response_model=SessionView)
def get_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return session_service.get_session_for_user(db, session_id, current_user)


# ======================
# MEETING
# ======================
@router.post("/{session_id}/join", response_model=MeetingDetails)
def join_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """409 SESSION_NOT_STARTED before the start; 403 once the link has expired."""
    return session_service.join_session(db, session_id, current_user)


@router.get("/{session_id}/meeting", response_model=MeetingDetails)
def get_meeting_details(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return session_service.get_meeting_details(db, session_id, current_user)


# ======================
# LIFECYCLE
# ======================
@router.patch("/{session_id}/cancel", response_model=SessionActionResponse)
def cancel_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return session_service.cancel_session(db, session_id, current_user)


@router.patch("/{session_id}/complete", response_model=SessionActionResponse)
def complete_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return session_service.complete_session(db, session_id, current_user)


@router.delete("/{session_id}", response_model=SessionActionResponse)
def delete_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return session_service.delete_session(db, session_id, current_user)


@router.post("/{session_id}/claim-mastery", response_model=MasteryClaimResponse)
def claim_mastery(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return mastery_service.claim_mastery(db, current_user, session_id)
