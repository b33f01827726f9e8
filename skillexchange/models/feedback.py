# skillexchange/models/feedback.py
from sqlalchemy import (
    Column, Integer, Float, Text, ForeignKey, TIMESTAMP, CheckConstraint, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from skillexchange.database import Base


class Feedback(Base):
    __tablename__ = "feedbacks"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    learner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    hours_taught = Column(Float, nullable=False)
    credits_awarded = Column(Float, nullable=False, default=0.0)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # Constraints
    __table_args__ = (
        UniqueConstraint("session_id", "learner_id", name="uq_feedback_session_learner"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="check_rating_range"),
        CheckConstraint("hours_taught > 0", name="check_hours_positive"),
    )

    # Relationships
    session = relationship("Session", back_populates="feedbacks")
    learner = relationship("User", foreign_keys=[learner_id])
    teacher = relationship("User", foreign_keys=[teacher_id])
