# tests/test_api_routes.py
"""
Router functions called directly with explicit current_user/db, plus the
domain error handler and the auth helpers.
"""

import asyncio
import json
from datetime import timedelta

import pytest

pytest.importorskip("fastapi")

from fastapi import HTTPException
from starlette.requests import Request

from conftest import NOW, START, StubAnalyzer
from skillexchange.api import admin as admin_api
from skillexchange.api import feedback as feedback_api
from skillexchange.api import profile as profile_api
from skillexchange.api import report as report_api
from skillexchange.api import session as session_api
from skillexchange.config import settings
from skillexchange.crud import report as report_crud
from skillexchange.exceptions import ConflictError, ForbiddenError, SessionNotStartedError
from skillexchange.main import skillexchange_error_handler
from skillexchange.models.session import SessionStatus
from skillexchange.schemas.feedback import FeedbackCreate
from skillexchange.schemas.profile import ProfileResponse, ProfileUpdate
from skillexchange.schemas.session import SessionCreate
from skillexchange.services import feedback_service, session_service
from skillexchange.utils import security


@pytest.fixture
def pair(make_user, befriend):
    teacher = make_user("Tara", teach=["Guitar"])
    learner = make_user("Liam")
    befriend(teacher, learner)
    return teacher, learner


def _handle(exc):
    request = Request({"type": "http", "method": "POST", "path": "/sessions/1/join", "headers": []})
    response = asyncio.run(skillexchange_error_handler(request, exc))
    return response.status_code, json.loads(response.body)


# ======================
# ERROR HANDLER
# ======================

def test_error_handler_maps_domain_errors():
    status_code, body = _handle(ForbiddenError("You can only join sessions you are invited to"))
    assert status_code == 403
    assert body == {"detail": "You can only join sessions you are invited to", "error_code": "FORBIDDEN"}

    status_code, body = _handle(ConflictError("Feedback already submitted for this session"))
    assert status_code == 409
    assert body["error_code"] == "CONFLICT"


def test_error_handler_carries_start_time():
    status_code, body = _handle(SessionNotStartedError(START))
    assert status_code == 409
    assert body["error_code"] == "SESSION_NOT_STARTED"
    assert body["starts_at"] == "2030-01-07T10:00:00"


# ======================
# SESSION ROUTES
# ======================

def test_session_routes_end_to_end(db_session, pair, monkeypatch):
    teacher, learner = pair
    monkeypatch.setattr(session_service, "utcnow", lambda: NOW)

    created = session_api.create_session(
        payload=SessionCreate(skill="Guitar", date="2030-01-07", time="10:00", learner_id=learner.id),
        current_user=teacher,
        db=db_session,
    )
    assert created["participant_ids"] == [learner.id]
    session_id = created["id"]

    with pytest.raises(SessionNotStartedError):
        session_api.join_session(session_id=session_id, current_user=learner, db=db_session)

    monkeypatch.setattr(session_service, "utcnow", lambda: START + timedelta(minutes=5))
    joined = session_api.join_session(session_id=session_id, current_user=learner, db=db_session)
    assert joined["meeting_room"] == created["meeting_room"]

    meeting = session_api.get_meeting_details(session_id=session_id, current_user=teacher, db=db_session)
    assert meeting["meeting_link_activated"] is True

    completed = session_api.complete_session(session_id=session_id, current_user=learner, db=db_session)
    assert completed["status"] == SessionStatus.COMPLETED.value

    monkeypatch.setattr(feedback_service, "get_sentiment_analyzer", lambda: StubAnalyzer(2))
    submitted = feedback_api.submit_feedback(
        payload=FeedbackCreate(session_id=session_id, rating=5, comment="Clear and patient", hours_taught=2),
        current_user=learner,
        db=db_session,
    )
    assert submitted["credits_awarded"] == 37

    claimed = session_api.claim_mastery(session_id=session_id, current_user=learner, db=db_session)
    assert claimed["skills_mastered"] == 1

    view = session_api.get_session(session_id=session_id, current_user=learner, db=db_session)
    assert view["feedback_given"] is True
    assert view["skill_claimed"] is True

    rows = session_api.list_my_sessions(
        filter="all", status="completed", search=None, limit=None, current_user=learner, db=db_session
    )
    assert [r["id"] for r in rows] == [session_id]

    removed = session_api.delete_session(session_id=session_id, current_user=learner, db=db_session)
    assert removed["session_id"] == session_id


def test_create_prefers_learner_ids_list(db_session, pair, make_user, befriend, monkeypatch):
    teacher, learner = pair
    second = make_user("Mia")
    befriend(teacher, second)
    monkeypatch.setattr(session_service, "utcnow", lambda: NOW)

    created = session_api.create_session(
        payload=SessionCreate(
            skill="Guitar",
            date="2030-01-07",
            time="10:00",
            learner_ids=[second.id, learner.id, second.id],
            learner_id=learner.id,
            duration=1.5,
        ),
        current_user=teacher,
        db=db_session,
    )
    assert created["participant_ids"] == [second.id, learner.id]
    assert created["end_time"] == START + timedelta(hours=1.5)


# ======================
# PROFILE / REPORT ROUTES
# ======================

def test_profile_routes(db_session, pair):
    teacher, learner = pair

    updated = profile_api.update_my_profile(
        payload=ProfileUpdate(
            bio="I teach guitar and love jazz standards.",
            teach_skills=["Guitar", "Guitar", " Ukulele "],
        ),
        current_user=teacher,
        db=db_session,
    )
    assert updated["teach_skills"] == ["Guitar", "Ukulele"]

    me = profile_api.get_my_profile(current_user=teacher, db=db_session)
    assert me["bio"].startswith("I teach guitar")
    assert me["credits"] == 0
    assert ProfileResponse.model_validate(me).email == "tara@test.edu"

    tiers = profile_api.list_badge_tiers()
    assert tiers[0] == {"level": 1, "name": "Beginner", "sessions_required": 10, "credits_required": 100}

    progress = profile_api.get_my_progress(current_user=learner, db=db_session)
    assert progress["in_progress"] == []


def test_report_routes_and_admin_dismissal(db_session, pair, make_user, monkeypatch):
    teacher, learner = pair
    operator = make_user("Ops")
    monkeypatch.setattr(settings, "ADMIN_EMAILS", "OPS@test.edu, someone@else.org")

    with pytest.raises(HTTPException) as exc_info:
        report_api.create_user_report(
            payload=report_api.ReportCreateRequest(reported_user_id=teacher.id, reason="Too short"),
            current_user=learner,
            db=db_session,
        )
    assert exc_info.value.status_code == 400

    with pytest.raises(HTTPException) as exc_info:
        report_api.create_user_report(
            payload=report_api.ReportCreateRequest(reported_user_id=learner.id, reason="Reporting myself for testing"),
            current_user=learner,
            db=db_session,
        )
    assert exc_info.value.status_code == 400

    created = report_api.create_user_report(
        payload=report_api.ReportCreateRequest(reported_user_id=teacher.id, reason="Rude during the session"),
        current_user=learner,
        db=db_session,
    )
    assert created["status"] == "pending"
    assert report_crud.has_active_report(db_session, teacher.id, learner.id)

    admin = security.require_admin(current_user=operator)
    with pytest.raises(HTTPException):
        security.require_admin(current_user=learner)

    with pytest.raises(HTTPException) as exc_info:
        admin_api.update_report_status(
            report_id=created["report_id"],
            payload=admin_api.ReportStatusUpdate(status="closed"),
            admin=admin,
            db=db_session,
        )
    assert exc_info.value.status_code == 400

    resolved = admin_api.update_report_status(
        report_id=created["report_id"],
        payload=admin_api.ReportStatusUpdate(status="Dismissed", admin_notes="Misunderstanding"),
        admin=admin,
        db=db_session,
    )
    assert resolved["status"] == "dismissed"
    assert resolved["resolved_at"] is not None
    assert not report_crud.has_active_report(db_session, teacher.id, learner.id)


def test_admin_session_maintenance(db_session, pair, make_user, schedule):
    teacher, learner = pair
    admin = make_user("Root", role="admin")
    session = schedule(teacher, [learner], session_date="2020-01-01", now=NOW.replace(year=2019))

    expired = admin_api.expire_sessions(admin=admin, db=db_session)
    assert expired["expired"] == 1

    listed = admin_api.get_all_sessions(status="expired", skip=0, limit=10, admin=admin, db=db_session)
    assert [s["id"] for s in listed] == [session.id]
    assert listed[0]["participant_names"] == ["Liam"]

    backfilled = admin_api.backfill_participants(admin=admin, db=db_session)
    assert backfilled["updated"] == 0


# ======================
# AUTH HELPERS
# ======================

def test_token_round_trip(db_session, pair):
    teacher, _ = pair
    token = security.create_access_token({"sub": teacher.email})

    assert security.decode_access_token(token) == teacher.email
    assert security.get_current_user(token=token, db=db_session).id == teacher.id


def test_bad_or_disabled_token(db_session, pair):
    teacher, _ = pair

    with pytest.raises(HTTPException) as exc_info:
        security.get_current_user(token="not-a-jwt", db=db_session)
    assert exc_info.value.status_code == 401

    expired = security.create_access_token({"sub": teacher.email}, expires_delta=timedelta(minutes=-1))
    assert security.decode_access_token(expired) is None

    teacher.is_active = False
    db_session.commit()
    token = security.create_access_token({"sub": teacher.email})
    with pytest.raises(HTTPException) as exc_info:
        security.get_current_user(token=token, db=db_session)
    assert exc_info.value.status_code == 403
