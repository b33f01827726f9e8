from __future__ import annotations

import pytest
from sqlalchemy.exc import SQLAlchemyError

# Skip suite when FastAPI dependency is not present in local environment.
pytest.importorskip("fastapi")

from fastapi import HTTPException

from conftest import START
from skillexchange.models.notification import Notification
from skillexchange.models.session import SessionStatus
from skillexchange.services import notification_service, session_service
from skillexchange.services.notification_service import NotificationEvent
from skillexchange.api.notification import (
    get_my_notifications,
    get_unread_count,
    mark_all_notifications_read,
    mark_notification_read,
)


def _broken_create(db, event):
    raise SQLAlchemyError("notifications table is locked")


def _event(user, event_type="session_created", message="New session"):
    return NotificationEvent(recipient_id=user.id, event_type=event_type, message=message)


def test_notification_api_read_flow(db_session, make_user):
    user = make_user("User")

    first, second = notification_service.emit(
        db_session,
        [_event(user), _event(user, "session_cancelled", "Session cancelled")],
    )
    second.is_read = True
    db_session.commit()

    unread = get_my_notifications(
        unread_only=True,
        limit=50,
        current_user=user,
        db=db_session,
    )
    assert len(unread) == 1
    assert unread[0]["id"] == first.id

    count_before = get_unread_count(current_user=user, db=db_session)
    assert count_before["unread_count"] == 1

    marked = mark_notification_read(
        notification_id=first.id,
        current_user=user,
        db=db_session,
    )
    assert marked["id"] == first.id

    count_after = get_unread_count(current_user=user, db=db_session)
    assert count_after["unread_count"] == 0

    notification_service.emit(db_session, [_event(user, "feedback_pending", "Rate your session")])

    all_marked = mark_all_notifications_read(current_user=user, db=db_session)
    assert all_marked["updated"] == 1

    final_count = get_unread_count(current_user=user, db=db_session)
    assert final_count["unread_count"] == 0


def test_mark_notification_read_404(db_session, make_user):
    user = make_user("User")
    with pytest.raises(HTTPException) as exc_info:
        mark_notification_read(notification_id=99999, current_user=user, db=db_session)
    assert exc_info.value.status_code == 404


def test_cannot_read_someone_elses_notification(db_session, make_user):
    owner = make_user("Owner")
    other = make_user("Other")
    (notification,) = notification_service.emit(db_session, [_event(owner)])

    with pytest.raises(HTTPException) as exc_info:
        mark_notification_read(notification_id=notification.id, current_user=other, db=db_session)
    assert exc_info.value.status_code == 404


def test_dispatch_email_for_notification_success(db_session, make_user, monkeypatch):
    user = make_user("Mail OK")
    (notification,) = notification_service.emit(db_session, [_event(user, "feedback_received", "Feedback")])

    sent_payload = {}

    class InlineThread:
        def __init__(self, target, args, kwargs, daemon):
            self._run = lambda: target(*args, **kwargs)

        def start(self):
            self._run()

    def fake_send_email(**kwargs):
        sent_payload.update(kwargs)
        return True

    monkeypatch.setattr(notification_service, "is_email_enabled", lambda: True)
    monkeypatch.setattr(notification_service, "send_email", fake_send_email)
    monkeypatch.setattr(notification_service.threading, "Thread", InlineThread)

    sent = notification_service.dispatch_email_for_notification(db_session, notification)
    assert sent is True
    assert sent_payload["to_email"] == "mail.ok@test.edu"
    assert sent_payload["subject"] == notification_service.EMAIL_SUBJECT_BY_EVENT["feedback_received"]
    assert "Feedback" in sent_payload["body_text"]


def test_dispatch_email_disabled(db_session, make_user, monkeypatch):
    user = make_user("Quiet")
    (notification,) = notification_service.emit(db_session, [_event(user)])
    monkeypatch.setattr(notification_service, "is_email_enabled", lambda: False)

    assert notification_service.dispatch_email_for_notification(db_session, notification) is False


def test_emit_failure_is_swallowed(db_session, make_user, monkeypatch):
    user = make_user("User")

    monkeypatch.setattr(notification_service, "create_notification", _broken_create)

    assert notification_service.emit(db_session, [_event(user)]) == []
    assert db_session.query(Notification).count() == 0


def test_failed_notification_does_not_undo_cancel(db_session, make_user, befriend, schedule, monkeypatch):
    teacher = make_user("Tara", teach=["Guitar"])
    learner = make_user("Liam")
    befriend(teacher, learner)
    session = schedule(teacher, [learner])

    monkeypatch.setattr(notification_service, "create_notification", _broken_create)

    result = session_service.cancel_session(db_session, session.id, teacher)
    assert result["status"] == SessionStatus.CANCELLED_BY_TEACHER.value

    db_session.refresh(session)
    assert session.status == SessionStatus.CANCELLED_BY_TEACHER.value


def test_failed_notification_does_not_undo_completion(db_session, make_user, befriend, schedule, monkeypatch):
    teacher = make_user("Tara", teach=["Guitar"])
    learner = make_user("Liam")
    befriend(teacher, learner)
    session = schedule(teacher, [learner])
    session_service.join_session(db_session, session.id, teacher, now=START)

    monkeypatch.setattr(notification_service, "create_notification", _broken_create)
    session_service.complete_session(db_session, session.id, teacher)

    db_session.refresh(session)
    assert session.status == SessionStatus.COMPLETED.value


def test_emit_sends_one_email_per_recipient(db_session, make_user, monkeypatch):
    ana = make_user("Ana")
    ben = make_user("Ben")
    outbox = []

    class InlineThread:
        def __init__(self, target, args, kwargs, daemon):
            self._run = lambda: target(*args, **kwargs)

        def start(self):
            self._run()

    monkeypatch.setattr(notification_service, "is_email_enabled", lambda: True)
    monkeypatch.setattr(notification_service, "send_email", lambda **kwargs: outbox.append(kwargs) or True)
    monkeypatch.setattr(notification_service.threading, "Thread", InlineThread)

    notification_service.emit(
        db_session,
        [
            NotificationEvent(recipient_id=ana.id, event_type="session_created", message="Guitar on Monday", session_id=7),
            NotificationEvent(recipient_id=ben.id, event_type="badge_earned", message="Beginner badge"),
        ],
    )

    assert [mail["to_email"] for mail in outbox] == ["ana@test.edu", "ben@test.edu"]
    assert "Session ID: 7" in outbox[0]["body_text"]
    assert "Session ID" not in outbox[1]["body_text"]
    assert outbox[1]["subject"] == notification_service.EMAIL_SUBJECT_BY_EVENT["badge_earned"]
