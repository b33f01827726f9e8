# skillexchange/models/session.py
import enum
from typing import List, Set

from sqlalchemy import (
    Column, Integer, String, Boolean, Date, ForeignKey, TIMESTAMP, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from skillexchange.database import Base


class SessionStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    CANCELLED_BY_TEACHER = "cancelled_by_teacher"


class MarkKind(str, enum.Enum):
    """Per-participant overlay sets layered on the global status."""
    PARTICIPANT = "participant"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    FEEDBACK_GIVEN = "feedback_given"
    SKILL_CLAIMED = "skill_claimed"
    HIDDEN = "hidden"


class Session(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # legacy single-learner records; read through primary_learner_id only
    learner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    skill = Column(String(100), nullable=False, index=True)
    session_type = Column(String(20), nullable=False, default="teaching")
    status = Column(String(30), nullable=False, default=SessionStatus.UPCOMING.value, index=True)

    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)
    start_time = Column(TIMESTAMP, nullable=True)
    end_time = Column(TIMESTAMP, nullable=True)

    meeting_room = Column(String(120), nullable=False)
    meeting_link_activated = Column(Boolean, default=False, nullable=False)
    meeting_link_expired = Column(Boolean, default=False, nullable=False)

    # legacy all-participants flags
    feedback_given = Column(Boolean, default=False, nullable=False)
    skill_claimed = Column(Boolean, default=False, nullable=False)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    teacher = relationship("User", foreign_keys=[teacher_id], back_populates="taught_sessions")
    marks = relationship(
        "SessionMark",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionMark.id",
        lazy="selectin",
    )
    feedbacks = relationship("Feedback", back_populates="session", cascade="all, delete-orphan")

    def mark_ids(self, kind: MarkKind) -> List[int]:
        return [m.user_id for m in self.marks if m.kind == kind.value]

    def has_mark(self, user_id: int, kind: MarkKind) -> bool:
        return any(m.user_id == user_id and m.kind == kind.value for m in self.marks)

    @property
    def participant_ids(self) -> List[int]:
        return self.mark_ids(MarkKind.PARTICIPANT)

    @property
    def cancelled_participant_ids(self) -> Set[int]:
        return set(self.mark_ids(MarkKind.CANCELLED))

    @property
    def completed_participant_ids(self) -> Set[int]:
        return set(self.mark_ids(MarkKind.COMPLETED))

    @property
    def feedback_given_by(self) -> Set[int]:
        return set(self.mark_ids(MarkKind.FEEDBACK_GIVEN))

    @property
    def skill_claimed_by(self) -> Set[int]:
        return set(self.mark_ids(MarkKind.SKILL_CLAIMED))

    @property
    def hidden_for_users(self) -> Set[int]:
        return set(self.mark_ids(MarkKind.HIDDEN))

    @property
    def active_participant_ids(self) -> List[int]:
        """Learners still taking part; falls back to the legacy learner for old records."""
        participants = self.participant_ids
        if participants or self.cancelled_participant_ids:
            return participants
        return [self.learner_id] if self.learner_id is not None else []

    @property
    def primary_learner_id(self):
        active = self.active_participant_ids
        return active[0] if active else None

    def is_teacher(self, user_id: int) -> bool:
        return self.teacher_id == user_id

    def is_participant(self, user_id: int) -> bool:
        return user_id in self.active_participant_ids

    def has_role(self, user_id: int) -> bool:
        return self.is_teacher(user_id) or self.is_participant(user_id)


class SessionMark(Base):
    """One member of one overlay set; the unique key gives set-union semantics."""
    __tablename__ = "session_marks"

    id = Column(Integer, primary_key=True)
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(20), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("session_id", "user_id", "kind", name="uq_session_mark"),
    )

    session = relationship("Session", back_populates="marks")
