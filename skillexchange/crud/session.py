# skillexchange/crud/session.py
"""
Session CRUD Operations
Storage helpers for sessions and their per-participant overlay sets.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from skillexchange.models.session import MarkKind, Session as SessionModel, SessionMark, SessionStatus


# ======================
# LOOKUPS
# ======================

def get_session(db: Session, session_id: int) -> Optional[SessionModel]:
    return db.query(SessionModel).filter(SessionModel.id == session_id).first()


def get_session_for_update(db: Session, session_id: int) -> Optional[SessionModel]:
    """
    Load a session holding a row lock for the rest of the transaction.

    PostgreSQL serializes concurrent lifecycle calls on the same session
    here; SQLite ignores FOR UPDATE and relies on its database-wide lock.
    The row and its marks are re-read even if already in the identity map.
    """
    return (
        db.query(SessionModel)
        .filter(SessionModel.id == session_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _membership_marks():
    return select(SessionMark.session_id).where(
        SessionMark.kind.in_([MarkKind.PARTICIPANT.value, MarkKind.CANCELLED.value]),
    )


def _legacy_learner(user_id: int):
    """The legacy learner column counts only for records with no membership rows at all."""
    return and_(
        SessionModel.learner_id == user_id,
        ~SessionModel.id.in_(_membership_marks()),
    )


def _involves(user_id: int):
    """Filter for sessions where the user is the learner side (active, legacy or cancelled)."""
    marked = select(SessionMark.session_id).where(
        SessionMark.user_id == user_id,
        SessionMark.kind.in_([MarkKind.PARTICIPANT.value, MarkKind.CANCELLED.value]),
    )
    return or_(_legacy_learner(user_id), SessionModel.id.in_(marked))


def _active_learner(user_id: int):
    marked = select(SessionMark.session_id).where(
        SessionMark.user_id == user_id,
        SessionMark.kind == MarkKind.PARTICIPANT.value,
    )
    return or_(_legacy_learner(user_id), SessionModel.id.in_(marked))


def list_sessions_for_user(db: Session, user_id: int, role: str = "all") -> List[SessionModel]:
    """Sessions the user teaches and/or learns in, newest first, excluding hidden ones."""
    if role == "teaching":
        involvement = SessionModel.teacher_id == user_id
    elif role == "learning":
        involvement = _involves(user_id)
    else:
        involvement = or_(SessionModel.teacher_id == user_id, _involves(user_id))

    hidden = select(SessionMark.session_id).where(
        SessionMark.user_id == user_id,
        SessionMark.kind == MarkKind.HIDDEN.value,
    )
    return (
        db.query(SessionModel)
        .filter(involvement, ~SessionModel.id.in_(hidden))
        .order_by(SessionModel.date.desc(), SessionModel.time.desc(), SessionModel.id.desc())
        .all()
    )


def list_completed_sessions_as_learner(db: Session, user_id: int) -> List[SessionModel]:
    completed_mark = select(SessionMark.session_id).where(
        SessionMark.user_id == user_id,
        SessionMark.kind == MarkKind.COMPLETED.value,
    )
    return (
        db.query(SessionModel)
        .filter(
            SessionModel.teacher_id != user_id,
            _active_learner(user_id),
            or_(
                SessionModel.status == SessionStatus.COMPLETED.value,
                SessionModel.id.in_(completed_mark),
            ),
        )
        .order_by(SessionModel.date.desc(), SessionModel.id.desc())
        .all()
    )


def count_completed_taught(db: Session, teacher_id: int) -> int:
    return db.query(SessionModel).filter(
        SessionModel.teacher_id == teacher_id,
        SessionModel.status == SessionStatus.COMPLETED.value,
    ).count()


def last_completed_between(db: Session, user_a: int, user_b: int) -> Optional[SessionModel]:
    """Most recent completed session between two users, in either teaching direction."""
    return (
        db.query(SessionModel)
        .filter(
            SessionModel.status == SessionStatus.COMPLETED.value,
            or_(
                and_(SessionModel.teacher_id == user_a, _active_learner(user_b)),
                and_(SessionModel.teacher_id == user_b, _active_learner(user_a)),
            ),
        )
        .order_by(
            SessionModel.date.desc(),
            SessionModel.time.desc(),
            SessionModel.id.desc(),
        )
        .first()
    )


# ======================
# WRITES
# ======================

def create_session(
    db: Session,
    *,
    teacher_id: int,
    participant_ids: Iterable[int],
    skill: str,
    session_date: date,
    time: str,
    start_time: datetime,
    end_time: datetime,
    meeting_room: str,
) -> SessionModel:
    participant_ids = list(participant_ids)
    session = SessionModel(
        teacher_id=teacher_id,
        skill=skill,
        session_type="teaching",
        status=SessionStatus.UPCOMING.value,
        date=session_date,
        time=time,
        start_time=start_time,
        end_time=end_time,
        meeting_room=meeting_room,
    )
    for participant_id in participant_ids:
        session.marks.append(SessionMark(user_id=participant_id, kind=MarkKind.PARTICIPANT.value))
    db.add(session)
    db.flush()
    return session


def add_mark(db: Session, session: SessionModel, user_id: int, kind: MarkKind) -> bool:
    """Add a user to one overlay set. Returns False when already present."""
    if session.has_mark(user_id, kind):
        return False
    session.marks.append(SessionMark(user_id=user_id, kind=kind.value))
    db.flush()
    return True


def remove_mark(db: Session, session: SessionModel, user_id: int, kind: MarkKind) -> bool:
    for mark in list(session.marks):
        if mark.user_id == user_id and mark.kind == kind.value:
            session.marks.remove(mark)
            db.flush()
            return True
    return False


def expire_stale_sessions(db: Session, now: datetime, grace: timedelta) -> int:
    """
    Flip overdue upcoming sessions to expired.

    A single conditional UPDATE; safe to run concurrently and repeatedly.
    """
    cutoff = now - grace
    updated = db.query(SessionModel).filter(
        SessionModel.status == SessionStatus.UPCOMING.value,
        or_(
            SessionModel.start_time < cutoff,
            and_(SessionModel.start_time.is_(None), SessionModel.date < now.date()),
        ),
    ).update({"status": SessionStatus.EXPIRED.value}, synchronize_session=False)
    return int(updated)


def list_legacy_sessions(db: Session) -> List[SessionModel]:
    """Sessions that only carry the legacy learner column."""
    return db.query(SessionModel).filter(
        SessionModel.learner_id.isnot(None),
        ~SessionModel.id.in_(_membership_marks()),
    ).all()


def list_claimed_sessions(db: Session, user_id: int) -> List[SessionModel]:
    """Sessions where the user has claimed the skill as mastered."""
    claimed = select(SessionMark.session_id).where(
        SessionMark.user_id == user_id,
        SessionMark.kind == MarkKind.SKILL_CLAIMED.value,
    )
    legacy = and_(_legacy_learner(user_id), SessionModel.skill_claimed.is_(True))
    return db.query(SessionModel).filter(or_(SessionModel.id.in_(claimed), legacy)).all()
