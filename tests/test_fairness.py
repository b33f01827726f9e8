"""
Scheduling guard: friendship, teachable skill, reports and the
consecutive-teaching rule.
"""

from datetime import date

import pytest

from conftest import NOW, START
from skillexchange.crud import report as report_crud
from skillexchange.exceptions import ConflictError, ForbiddenError
from skillexchange.models.session import Session, SessionStatus
from skillexchange.services import fairness, session_service


@pytest.fixture
def pair(make_user, befriend):
    teacher = make_user("Tara", teach=["Guitar", "Piano"])
    learner = make_user("Liam", teach=["Guitar"])
    befriend(teacher, learner)
    return teacher, learner


def test_same_skill_same_direction_is_blocked_after_completion(db_session, pair, run_session, schedule):
    teacher, learner = pair
    first = run_session(teacher, [learner], skill="Guitar")
    assert first.status == SessionStatus.COMPLETED.value

    with pytest.raises(ConflictError) as exc_info:
        schedule(teacher, [learner], skill="Guitar", session_date="2030-01-08")
    assert "Liam" in exc_info.value.message
    assert exc_info.value.extra["last_session_id"] == first.id


def test_different_skill_is_allowed(db_session, pair, run_session, schedule):
    teacher, learner = pair
    run_session(teacher, [learner], skill="Guitar")

    piano = schedule(teacher, [learner], skill="Piano", session_date="2030-01-08")
    assert piano.status == SessionStatus.UPCOMING.value


def test_reverse_direction_is_allowed(db_session, pair, run_session, schedule):
    teacher, learner = pair
    run_session(teacher, [learner], skill="Guitar")

    reverse = schedule(learner, [teacher], skill="Guitar", session_date="2030-01-08")
    assert reverse.teacher_id == learner.id


def test_only_completed_sessions_count(db_session, pair, schedule):
    teacher, learner = pair
    schedule(teacher, [learner], skill="Guitar")

    # the first one is still upcoming, so a second same-skill proposal passes
    second = schedule(teacher, [learner], skill="Guitar", session_date="2030-01-08")
    assert second.id is not None


def test_latest_completed_session_decides(db_session, pair, run_session, schedule):
    teacher, learner = pair
    run_session(teacher, [learner], skill="Guitar", session_date="2030-01-07")
    run_session(learner, [teacher], skill="Guitar", session_date="2030-01-08")

    again = schedule(teacher, [learner], skill="Guitar", session_date="2030-01-09")
    assert again.status == SessionStatus.UPCOMING.value


def test_is_consecutive_repeat_pure_check(db_session, pair, run_session):
    teacher, learner = pair
    last = run_session(teacher, [learner], skill="Guitar")

    assert fairness.is_consecutive_repeat(None, teacher.id, "Guitar") is False
    assert fairness.is_consecutive_repeat(last, teacher.id, "Guitar") is True
    assert fairness.is_consecutive_repeat(last, teacher.id, "Piano") is False
    assert fairness.is_consecutive_repeat(last, learner.id, "Guitar") is False


def test_non_friend_is_forbidden(db_session, make_user, schedule):
    teacher = make_user("Tara", teach=["Guitar"])
    stranger = make_user("Sam")

    with pytest.raises(ForbiddenError):
        schedule(teacher, [stranger])


def test_one_directional_friendship_is_not_enough(db_session, make_user, schedule):
    from skillexchange.models.user import Friendship

    teacher = make_user("Tara", teach=["Guitar"])
    learner = make_user("Liam")
    db_session.add(Friendship(user_id=teacher.id, friend_id=learner.id))
    db_session.commit()

    with pytest.raises(ForbiddenError):
        schedule(teacher, [learner])


def test_skill_must_be_teachable(db_session, pair, schedule):
    teacher, learner = pair
    with pytest.raises(ForbiddenError):
        schedule(teacher, [learner], skill="Chess")


def test_active_report_blocks_until_dismissed(db_session, pair, schedule):
    teacher, learner = pair
    report = report_crud.create_report(
        db_session,
        reporter_id=learner.id,
        reported_user_id=teacher.id,
        reason="Did not show up twice in a row",
    )
    db_session.commit()

    with pytest.raises(ForbiddenError):
        schedule(teacher, [learner])

    report_crud.set_report_status(db_session, report, "reviewed")
    db_session.commit()
    with pytest.raises(ForbiddenError):
        schedule(teacher, [learner])

    report_crud.set_report_status(db_session, report, "dismissed")
    db_session.commit()
    assert report.resolved_at is not None
    assert schedule(teacher, [learner]).id is not None


def test_guard_runs_before_the_time_check(db_session, make_user, schedule):
    teacher = make_user("Tara", teach=["Guitar"])
    stranger = make_user("Sam")

    # past start, but the friendship failure is reported first
    with pytest.raises(ForbiddenError):
        schedule(teacher, [stranger], now=NOW.replace(year=2031))


def test_learner_who_left_the_group_is_not_blocked(db_session, make_user, befriend, schedule):
    teacher = make_user("Tara", teach=["Guitar"])
    liam, mia = make_user("Liam"), make_user("Mia")
    befriend(teacher, liam, mia)
    group = schedule(teacher, [liam, mia])

    session_service.cancel_session(db_session, group.id, liam)
    session_service.join_session(db_session, group.id, teacher, now=START)
    session_service.complete_session(db_session, group.id, teacher)
    db_session.refresh(group)
    assert group.status == SessionStatus.COMPLETED.value
    assert group.cancelled_participant_ids == {liam.id}

    again = schedule(teacher, [liam], session_date="2030-01-08")
    assert again.status == SessionStatus.UPCOMING.value

    with pytest.raises(ConflictError):
        schedule(teacher, [mia], session_date="2030-01-09")


def test_legacy_learner_record_still_counts(db_session, pair, schedule):
    teacher, learner = pair
    db_session.add(Session(
        teacher_id=teacher.id,
        learner_id=learner.id,
        skill="Guitar",
        status=SessionStatus.COMPLETED.value,
        date=date(2029, 12, 1),
        time="10:00",
        meeting_room="legacy_room",
    ))
    db_session.commit()

    with pytest.raises(ConflictError):
        schedule(teacher, [learner], skill="Guitar")
