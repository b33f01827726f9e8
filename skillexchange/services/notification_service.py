"""
Notification fan-out.

Services describe side effects as NotificationEvent values and hand them to
emit() after their own commit. Each event becomes an inbox row and, when
SMTP is configured, a best-effort e-mail sent off the request thread.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from skillexchange import models
from skillexchange.crud import user as user_crud
from skillexchange.models.notification import Notification
from skillexchange.utils.email import is_email_enabled, send_email

logger = logging.getLogger(__name__)


EMAIL_SUBJECT_BY_EVENT = {
    "session_created": "A new session was scheduled on SkillExchange",
    "session_cancelled": "Session cancelled on SkillExchange",
    "session_participant_left": "A learner left your session on SkillExchange",
    "feedback_pending": "Tell us how your session went",
    "feedback_received": "You received new feedback on SkillExchange",
    "badge_earned": "You earned a new badge on SkillExchange",
}
DEFAULT_SUBJECT = "New notification from SkillExchange"


@dataclass(frozen=True)
class NotificationEvent:
    """A "notify user X of event Y" side effect produced by the core."""
    recipient_id: int
    event_type: str
    message: str
    session_id: Optional[int] = None
    actor_id: Optional[int] = None


# ======================
# INBOX
# ======================

def _inbox(db: Session, user_id: int, unread_only: bool = False) -> Query:
    query = db.query(Notification).filter(Notification.recipient_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query


def list_user_notifications(
    db: Session,
    *,
    user_id: int,
    unread_only: bool = False,
    limit: int = 50,
) -> List[Notification]:
    """Newest first; ties on created_at fall back to insertion order."""
    return (
        _inbox(db, user_id, unread_only)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def get_unread_count(db: Session, *, user_id: int) -> int:
    return _inbox(db, user_id, unread_only=True).count()


def mark_notification_read(
    db: Session,
    *,
    user_id: int,
    notification_id: int,
) -> Optional[Notification]:
    """Returns None when the notification does not exist or belongs to someone else."""
    notification = _inbox(db, user_id).filter(Notification.id == notification_id).first()
    if notification is None:
        return None
    if not notification.is_read:
        notification.is_read = True
        db.commit()
    return notification


def mark_all_notifications_read(db: Session, *, user_id: int) -> int:
    updated = _inbox(db, user_id, unread_only=True).update(
        {"is_read": True}, synchronize_session=False
    )
    db.commit()
    return int(updated)


# ======================
# EMIT
# ======================

def create_notification(db: Session, event: NotificationEvent) -> Notification:
    notification = Notification(
        recipient_id=event.recipient_id,
        actor_id=event.actor_id,
        session_id=event.session_id,
        event_type=event.event_type,
        message=event.message,
    )
    db.add(notification)
    db.flush()
    return notification


def emit(db: Session, events: Iterable[NotificationEvent]) -> List[Notification]:
    """
    Persist and dispatch events after the caller has committed its own work.

    Never raises: a failure here is logged and rolled back on its own so the
    primary state change stays in place.
    """
    events = list(events)
    if not events:
        return []
    try:
        created = [create_notification(db, event) for event in events]
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "Dropped %d notification(s) (%s): %s",
            len(events),
            ", ".join(sorted({e.event_type for e in events})),
            exc,
        )
        return []

    dispatch_emails(db, created)
    return created


# ======================
# E-MAIL
# ======================

def _email_body(recipient: models.User, notification: Notification) -> str:
    name = (recipient.name or "").strip() or "there"
    lines = [f"Hi {name},", "", notification.message, ""]
    if notification.session_id:
        lines += [f"Session ID: {notification.session_id}", ""]
    lines.append("Open SkillExchange to view details.")
    return "\n".join(lines)


def _deliver(to_email: str, subject: str, body_text: str, *, notification_id: Optional[int]) -> None:
    if not send_email(to_email=to_email, subject=subject, body_text=body_text):
        logger.info("Notification email not sent (notification_id=%s)", notification_id)


def dispatch_emails(db: Session, notifications: List[Notification]) -> int:
    """
    Queue one e-mail per committed notification on a daemon thread.

    Recipients are loaded in one query. Returns how many were queued;
    failures are logged and never raised.
    """
    if not notifications or not is_email_enabled():
        return 0
    try:
        recipients: Dict[int, models.User] = {
            user.id: user
            for user in user_crud.get_users_by_ids(db, {n.recipient_id for n in notifications})
        }
    except SQLAlchemyError as exc:
        logger.warning("Recipient lookup for notification emails failed: %s", exc)
        return 0

    queued = 0
    for notification in notifications:
        recipient = recipients.get(notification.recipient_id)
        if recipient is None or not recipient.email:
            continue
        try:
            threading.Thread(
                target=_deliver,
                args=(
                    recipient.email,
                    EMAIL_SUBJECT_BY_EVENT.get(notification.event_type, DEFAULT_SUBJECT),
                    _email_body(recipient, notification),
                ),
                kwargs={"notification_id": notification.id},
                daemon=True,
            ).start()
            queued += 1
        except Exception as exc:
            logger.warning(
                "Notification email dispatch failed (notification_id=%s): %s",
                notification.id,
                exc,
            )
    return queued


def dispatch_email_for_notification(db: Session, notification: Notification) -> bool:
    return dispatch_emails(db, [notification]) == 1
