from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Index, TIMESTAMP, func
from sqlalchemy.orm import relationship
from skillexchange.database import Base


class Notification(Base):
    """One persisted lifecycle event for a recipient's inbox."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="SET NULL"), nullable=True, index=True)
    # session_created, session_cancelled, session_participant_left,
    # feedback_pending, feedback_received, badge_earned
    event_type = Column(String(50), nullable=False)
    message = Column(String(500), nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)

    recipient = relationship("User", foreign_keys=[recipient_id])
    actor = relationship("User", foreign_keys=[actor_id])
    session = relationship("Session", foreign_keys=[session_id])

    # inbox listing and unread count both filter on these two columns
    __table_args__ = (
        Index("ix_notifications_recipient_unread", "recipient_id", "is_read"),
    )
