# skillexchange/services/session_service.py
"""
Session Lifecycle Manager

A session has one global status plus per-participant overlay sets
(participants, cancelled, completed, feedback given, skill claimed,
hidden). Per-user actions write to the overlays; the global status only
moves at these boundaries:
- teacher cancels                      -> cancelled_by_teacher
- last active learner cancels          -> cancelled
- teacher completes, a one-to-one
  learner completes, or every active
  learner has completed                -> completed
- start + grace elapsed while upcoming -> expired (sweep)
"""

import logging
import re
import uuid
from datetime import date, datetime, timedelta, UTC
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy.orm import Session

from skillexchange import models
from skillexchange.config import settings
from skillexchange.crud import session as session_crud
from skillexchange.crud import user as user_crud
from skillexchange.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    SessionNotStartedError,
    ValidationError,
)
from skillexchange.models.session import MarkKind, SessionStatus
from skillexchange.services import fairness
from skillexchange.services.notification_service import NotificationEvent, emit

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")

PAST_STATUSES = (
    SessionStatus.COMPLETED.value,
    SessionStatus.CANCELLED.value,
    SessionStatus.EXPIRED.value,
    SessionStatus.CANCELLED_BY_TEACHER.value,
)
ROLE_FILTERS = ("all", "teaching", "learning")
STATUS_FILTERS = ("past", "upcoming", "completed", "cancelled_expired")


def utcnow() -> datetime:
    """Naive UTC, matching how timestamps are stored."""
    return datetime.now(UTC).replace(tzinfo=None)


def _link_grace() -> timedelta:
    return timedelta(minutes=settings.MEETING_LINK_GRACE_MINUTES)


# ======================
# SCHEDULING HELPERS
# ======================

def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def parse_session_date(value: Union[str, date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")


def parse_session_time(value: str) -> str:
    match = TIME_PATTERN.match(str(value).strip())
    if not match:
        raise ValidationError("Time must be in HH:MM format")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def parse_datetime(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError("Invalid end_time format. Use ISO 8601")
    return _to_naive_utc(parsed)


def resolve_end_time(
    start: datetime,
    end_time: Optional[Union[str, datetime]] = None,
    duration: Optional[float] = None,
) -> datetime:
    """Explicit end time, else ``duration`` hours, else the default length."""
    if end_time is not None:
        end = parse_datetime(end_time)
        if end <= start:
            raise ValidationError("end_time must be after the session start")
        return end
    if duration is not None:
        try:
            hours = float(duration)
        except (TypeError, ValueError):
            raise ValidationError("duration must be a number of hours")
        if hours > 0:
            return start + timedelta(hours=hours)
    return start + timedelta(hours=settings.DEFAULT_SESSION_HOURS)


def session_start(session: models.Session) -> datetime:
    if session.start_time is not None:
        return session.start_time
    hours, minutes = session.time.split(":")
    return datetime.combine(session.date, datetime.min.time()).replace(
        hour=int(hours), minute=int(minutes)
    )


def normalize_participant_ids(
    learner_ids: Optional[Sequence[int]] = None,
    learner_id: Optional[int] = None,
) -> List[int]:
    """Multi-learner list wins over the legacy single id; duplicates dropped in order."""
    raw = list(learner_ids) if learner_ids else ([learner_id] if learner_id is not None else [])
    ordered: List[int] = []
    for value in raw:
        if value is None:
            continue
        try:
            pid = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid student id: {value!r}")
        if pid not in ordered:
            ordered.append(pid)
    return ordered


def _describe(session: models.Session) -> str:
    return f"{session.skill} on {session.date.isoformat()} at {session.time}"


def _load(db: Session, session_id: int, for_update: bool = False) -> models.Session:
    if for_update:
        session = session_crud.get_session_for_update(db, session_id)
    else:
        session = session_crud.get_session(db, session_id)
    if not session:
        raise NotFoundError("Session not found", extra={"session_id": session_id})
    return session


def _names_for(db: Session, user_ids: Iterable[int]) -> Dict[int, str]:
    return {u.id: u.name for u in user_crud.get_users_by_ids(db, set(user_ids))}


# ======================
# STATUS DERIVATION
# ======================

def project_status(session: models.Session, user_id: int) -> str:
    """The status one user sees: own cancel, then own/global completion, else global."""
    if user_id in session.cancelled_participant_ids:
        return SessionStatus.CANCELLED.value
    if user_id in session.completed_participant_ids or session.status == SessionStatus.COMPLETED.value:
        return SessionStatus.COMPLETED.value
    return session.status


def _all_active_completed(session: models.Session) -> bool:
    active = session.active_participant_ids
    completed = session.completed_participant_ids
    return bool(active) and all(pid in completed for pid in active)


def _complete_globally(db: Session, session: models.Session) -> None:
    """Flip to completed and back-fill the completed set with everyone active."""
    for pid in session.active_participant_ids:
        session_crud.add_mark(db, session, pid, MarkKind.COMPLETED)
    session_crud.add_mark(db, session, session.teacher_id, MarkKind.COMPLETED)
    session.status = SessionStatus.COMPLETED.value


# ======================
# CREATE
# ======================

def create_session(
    db: Session,
    teacher: models.User,
    *,
    participant_ids: Sequence[int],
    skill: str,
    session_date: Union[str, date],
    time: str,
    duration: Optional[float] = None,
    end_time: Optional[Union[str, datetime]] = None,
    now: Optional[datetime] = None,
) -> models.Session:
    """
    Schedule a new upcoming session taught by ``teacher``.

    Raises:
        ValidationError: missing fields or malformed date/time
        NotFoundError: a participant id does not resolve to a user
        ForbiddenError: non-friend, skill not teachable, active report
        ConflictError: fairness violation or start not in the future
    """
    now = now or utcnow()
    skill = (skill or "").strip()
    if not skill or not session_date or not time:
        raise ValidationError("Required fields: skill, date, time")

    participant_ids = normalize_participant_ids(participant_ids)
    if not participant_ids:
        raise ValidationError("At least one student must be selected")
    if teacher.id in participant_ids:
        raise ValidationError("You cannot schedule a session with yourself")

    users = {u.id: u for u in user_crud.get_users_by_ids(db, participant_ids)}
    if len(users) != len(participant_ids):
        raise NotFoundError("One or more students not found")
    participants = [users[pid] for pid in participant_ids]

    day = parse_session_date(session_date)
    clock = parse_session_time(time)
    start = datetime.combine(day, datetime.min.time()).replace(
        hour=int(clock[:2]), minute=int(clock[3:])
    )

    fairness.guard_session_proposal(db, teacher, participants, skill)

    if start <= now:
        raise ConflictError("Session date and time must be in the future")
    end = resolve_end_time(start, end_time=end_time, duration=duration)

    session = session_crud.create_session(
        db,
        teacher_id=teacher.id,
        participant_ids=participant_ids,
        skill=skill,
        session_date=day,
        time=clock,
        start_time=start,
        end_time=end,
        meeting_room=f"session_{teacher.id}_{uuid.uuid4().hex[:12]}",
    )
    db.commit()
    db.refresh(session)

    logger.info(
        "Session created (session_id=%s, teacher_id=%s, skill=%s, participants=%s)",
        session.id, teacher.id, skill, participant_ids,
    )

    when = _describe(session)
    events = [
        NotificationEvent(
            recipient_id=teacher.id,
            event_type="session_created",
            message=f"You have successfully scheduled a session for {when}.",
            session_id=session.id,
            actor_id=teacher.id,
        )
    ]
    events.extend(
        NotificationEvent(
            recipient_id=pid,
            event_type="session_created",
            message=f"{teacher.name} has scheduled a session with you for {when}.",
            session_id=session.id,
            actor_id=teacher.id,
        )
        for pid in participant_ids
    )
    emit(db, events)
    return session


# ======================
# JOIN / MEETING
# ======================

def _user_role(session: models.Session, user_id: int) -> str:
    if session.is_teacher(user_id):
        return "teacher"
    if session.primary_learner_id == user_id:
        return "learner"
    return "participant"


def _meeting_payload(db: Session, session: models.Session, user_id: int) -> Dict[str, Any]:
    active = session.active_participant_ids
    names = _names_for(db, [session.teacher_id, *active])
    return {
        "session_id": session.id,
        "meeting_room": session.meeting_room,
        "teacher_name": names.get(session.teacher_id),
        "participant_names": [names.get(pid, "Unknown") for pid in active],
        "participant_count": len(active),
        "skill": session.skill,
        "date": session.date.isoformat(),
        "time": session.time,
        "status": session.status,
        "user_role": _user_role(session, user_id),
        "meeting_link_activated": session.meeting_link_activated,
        "meeting_link_expired": session.meeting_link_expired,
    }


def _expire_link_if_due(db: Session, session: models.Session, now: datetime) -> None:
    """Persist the expired flag and refuse access once start + grace has passed."""
    if session.meeting_link_expired or now > session_start(session) + _link_grace():
        if not session.meeting_link_expired:
            session.meeting_link_expired = True
            db.commit()
        raise ForbiddenError("Meeting link has expired and is no longer available.")


def join_session(
    db: Session,
    session_id: int,
    actor: models.User,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Join the meeting of an upcoming session.

    Before the start this raises SessionNotStartedError for the caller to
    retry later; past start + grace the link is expired for good.
    """
    now = now or utcnow()
    session = _load(db, session_id, for_update=True)

    if not session.has_role(actor.id):
        raise ForbiddenError("You can only join sessions you are invited to")
    if session.status != SessionStatus.UPCOMING.value:
        raise ConflictError("This session is not available for joining")

    _expire_link_if_due(db, session, now)

    start = session_start(session)
    if now < start:
        db.rollback()
        raise SessionNotStartedError(
            start,
            f"Session starts at {session.time} on {session.date.isoformat()}; the link will be active then.",
        )

    if not session.meeting_link_activated:
        session.meeting_link_activated = True
        db.commit()
        logger.info("Meeting link activated (session_id=%s, user_id=%s)", session.id, actor.id)

    return _meeting_payload(db, session, actor.id)


def get_meeting_details(
    db: Session,
    session_id: int,
    actor: models.User,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    now = now or utcnow()
    expire_stale_sessions(db, now)
    session = _load(db, session_id)
    if not session.has_role(actor.id):
        raise ForbiddenError("You can only access sessions you are invited to")
    _expire_link_if_due(db, session, now)
    return _meeting_payload(db, session, actor.id)


# ======================
# CANCEL
# ======================

def _leave(db: Session, session: models.Session, user_id: int) -> None:
    session_crud.remove_mark(db, session, user_id, MarkKind.PARTICIPANT)
    session_crud.add_mark(db, session, user_id, MarkKind.CANCELLED)


def cancel_session(db: Session, session_id: int, actor: models.User) -> Dict[str, Any]:
    """
    Teacher: cancels for everyone. Learner: withdraws only themself; the
    session is cancelled when nobody is left.
    """
    session = _load(db, session_id, for_update=True)
    is_teacher = session.is_teacher(actor.id)

    if not is_teacher and not session.is_participant(actor.id):
        raise ForbiddenError("You can only cancel your own sessions")
    if session.status != SessionStatus.UPCOMING.value:
        raise ConflictError("Only upcoming sessions can be cancelled")

    when = _describe(session)

    if is_teacher:
        recipients = list(session.active_participant_ids)
        session.status = SessionStatus.CANCELLED_BY_TEACHER.value
        db.commit()
        logger.info("Session cancelled by teacher (session_id=%s)", session.id)
        emit(db, [
            NotificationEvent(
                recipient_id=pid,
                event_type="session_cancelled",
                message=f"Your session for {when} with {actor.name} has been cancelled by the teacher.",
                session_id=session.id,
                actor_id=actor.id,
            )
            for pid in recipients
        ])
        return {
            "message": "Session cancelled for all students.",
            "status": SessionStatus.CANCELLED_BY_TEACHER.value,
            "session_id": session.id,
        }

    if actor.id in session.completed_participant_ids:
        raise ConflictError("You have already completed this session")

    _leave(db, session, actor.id)

    if not session.active_participant_ids:
        session.status = SessionStatus.CANCELLED.value
        message = "You have cancelled your participation. Session is now fully cancelled as no students remain."
        event = NotificationEvent(
            recipient_id=session.teacher_id,
            event_type="session_cancelled",
            message=f"Your session for {when} has been cancelled by all participants.",
            session_id=session.id,
            actor_id=actor.id,
        )
    else:
        if _all_active_completed(session):
            _complete_globally(db, session)
        message = "You have cancelled your participation."
        event = NotificationEvent(
            recipient_id=session.teacher_id,
            event_type="session_participant_left",
            message=f"{actor.name} has cancelled their participation in your session for {when}.",
            session_id=session.id,
            actor_id=actor.id,
        )

    status = session.status
    db.commit()
    logger.info(
        "Participant cancelled (session_id=%s, user_id=%s, status=%s)",
        session.id, actor.id, status,
    )
    emit(db, [event])
    return {"message": message, "status": status, "session_id": session.id}


# ======================
# COMPLETE
# ======================

def complete_session(db: Session, session_id: int, actor: models.User) -> Dict[str, Any]:
    """
    Record completion.

    The teacher completes for everyone; in a one-to-one session the learner
    does too. In a group session a learner only records themself, and the
    session completes once every active learner has.
    """
    session = _load(db, session_id, for_update=True)
    is_teacher = session.is_teacher(actor.id)

    if not is_teacher and not session.is_participant(actor.id):
        raise ForbiddenError("You can only complete sessions you participated in")
    if session.status != SessionStatus.UPCOMING.value:
        raise ConflictError("Only upcoming sessions can be marked as completed")
    if not session.meeting_link_activated:
        raise ConflictError("You must join the session before marking it as completed")

    active = list(session.active_participant_ids)
    feedback_given = session.feedback_given_by

    if is_teacher:
        _complete_globally(db, session)
        message = "Session marked completed for all participants"
        pending = [pid for pid in active if pid not in feedback_given]
    elif len(active) == 1:
        session_crud.add_mark(db, session, actor.id, MarkKind.COMPLETED)
        _complete_globally(db, session)
        message = "Session marked completed"
        pending = [] if actor.id in feedback_given else [actor.id]
    else:
        session_crud.add_mark(db, session, actor.id, MarkKind.COMPLETED)
        if _all_active_completed(session):
            _complete_globally(db, session)
        message = "Your completion has been recorded"
        pending = [] if actor.id in feedback_given else [actor.id]

    status = session.status
    completed = sorted(session.completed_participant_ids)
    teacher_name = session.teacher.name if session.teacher else "your teacher"
    db.commit()
    logger.info(
        "Completion recorded (session_id=%s, user_id=%s, status=%s)",
        session.id, actor.id, status,
    )

    emit(db, [
        NotificationEvent(
            recipient_id=pid,
            event_type="feedback_pending",
            message=(
                f"You have a pending feedback request for your session on "
                f"{session.date.isoformat()} with {teacher_name}."
            ),
            session_id=session.id,
            actor_id=actor.id,
        )
        for pid in pending
    ])
    return {
        "message": message,
        "status": status,
        "session_id": session.id,
        "completed_participants": completed,
    }


# ======================
# DELETE (SOFT)
# ======================

def delete_session(db: Session, session_id: int, actor: models.User) -> Dict[str, Any]:
    """Hide the session from the actor's history; the record itself stays."""
    session = _load(db, session_id, for_update=True)
    involved = (
        session.is_teacher(actor.id)
        or session.is_participant(actor.id)
        or actor.id in session.cancelled_participant_ids
    )
    if not involved:
        raise ForbiddenError("You can only delete sessions you participated in")

    session_crud.add_mark(db, session, actor.id, MarkKind.HIDDEN)
    db.commit()
    return {"message": "Session removed from your history", "session_id": session.id}


# ======================
# EXPIRY SWEEP
# ======================

def expire_stale_sessions(db: Session, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    count = session_crud.expire_stale_sessions(db, now, _link_grace())
    db.commit()
    if count:
        logger.info("Expired %d stale upcoming session(s)", count)
    return count


# ======================
# LISTING
# ======================

def _matches_status_filter(session: models.Session, user_id: int, status: Optional[str]) -> bool:
    cancelled = user_id in session.cancelled_participant_ids
    completed = user_id in session.completed_participant_ids
    if status is None:
        return True
    if status == "past":
        return session.status in PAST_STATUSES or cancelled or completed
    if status == "upcoming":
        return session.status == SessionStatus.UPCOMING.value and not cancelled and not completed
    if status == "completed":
        return session.status == SessionStatus.COMPLETED.value
    # cancelled_expired
    return session.status in (
        SessionStatus.CANCELLED.value,
        SessionStatus.EXPIRED.value,
        SessionStatus.CANCELLED_BY_TEACHER.value,
    ) or cancelled


def serialize_session(session: models.Session, names: Dict[int, str]) -> Dict[str, Any]:
    active = session.active_participant_ids
    return {
        "id": session.id,
        "teacher_id": session.teacher_id,
        "teacher_name": names.get(session.teacher_id),
        "skill": session.skill,
        "date": session.date.isoformat(),
        "time": session.time,
        "start_time": session.start_time,
        "end_time": session.end_time,
        "status": session.status,
        "global_status": session.status,
        "participant_ids": active,
        "participant_names": [names.get(pid, "Unknown") for pid in active],
        "participant_count": len(active),
        "cancelled_participants": sorted(session.cancelled_participant_ids),
        "completed_participants": sorted(session.completed_participant_ids),
        "meeting_link_activated": session.meeting_link_activated,
        "meeting_link_expired": session.meeting_link_expired,
        "feedback_given": session.feedback_given,
        "skill_claimed": session.skill_claimed,
    }


def serialize_for_user(session: models.Session, user_id: int, names: Dict[int, str]) -> Dict[str, Any]:
    row = serialize_session(session, names)
    is_teacher = session.is_teacher(user_id)
    active = row["participant_ids"]

    if is_teacher:
        if len(active) == 1:
            counterpart = row["participant_names"][0]
        else:
            counterpart = f"{len(active)} students"
        feedback_given = session.feedback_given
        skill_claimed = session.skill_claimed
    else:
        counterpart = row["teacher_name"]
        feedback_given = user_id in session.feedback_given_by
        skill_claimed = user_id in session.skill_claimed_by

    row.update({
        "status": project_status(session, user_id),
        "type": "teaching" if is_teacher else "learning",
        "counterpart_name": counterpart,
        "feedback_given": feedback_given,
        "skill_claimed": skill_claimed,
    })
    return row


def list_sessions(
    db: Session,
    user: models.User,
    *,
    role: str = "all",
    status: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Per-user session view; runs the expiry sweep first."""
    if role not in ROLE_FILTERS:
        raise ValidationError(f"filter must be one of: {', '.join(ROLE_FILTERS)}")
    if status is not None and status not in STATUS_FILTERS:
        raise ValidationError(f"status must be one of: {', '.join(STATUS_FILTERS)}")

    expire_stale_sessions(db, now)

    sessions = [
        s for s in session_crud.list_sessions_for_user(db, user.id, role)
        if _matches_status_filter(s, user.id, status)
    ]
    names = _names_for(
        db,
        [uid for s in sessions for uid in (s.teacher_id, *s.active_participant_ids)],
    )
    rows = [serialize_for_user(s, user.id, names) for s in sessions]

    if search:
        needle = search.strip().lower()
        rows = [
            r for r in rows
            if needle in r["skill"].lower()
            or needle in (r["counterpart_name"] or "").lower()
            or any(needle in (n or "").lower() for n in r["participant_names"])
        ]
    elif status == "past":
        rows = rows[: limit or settings.PAST_SESSIONS_DEFAULT_LIMIT]
    elif limit:
        rows = rows[:limit]
    return rows


def get_session_for_user(
    db: Session,
    session_id: int,
    user: models.User,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    expire_stale_sessions(db, now)
    session = _load(db, session_id)
    if not (session.has_role(user.id) or user.id in session.cancelled_participant_ids):
        raise ForbiddenError("You can only view sessions you are part of")
    names = _names_for(db, [session.teacher_id, *session.active_participant_ids])
    return serialize_for_user(session, user.id, names)


# ======================
# ADMIN / MAINTENANCE
# ======================

def list_all_sessions(
    db: Session,
    status: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    expire_stale_sessions(db)
    query = db.query(models.Session)
    if status:
        query = query.filter(models.Session.status == status)
    sessions = query.order_by(models.Session.id.desc()).offset(offset).limit(limit).all()
    names = _names_for(
        db,
        [uid for s in sessions for uid in (s.teacher_id, *s.active_participant_ids)],
    )
    return [serialize_session(s, names) for s in sessions]


def backfill_legacy_participants(db: Session) -> int:
    """Give old single-learner records a participant row so overlays work uniformly."""
    sessions = session_crud.list_legacy_sessions(db)
    for session in sessions:
        session_crud.add_mark(db, session, session.learner_id, MarkKind.PARTICIPANT)
    db.commit()
    if sessions:
        logger.info("Back-filled participants for %d legacy session(s)", len(sessions))
    return len(sessions)
