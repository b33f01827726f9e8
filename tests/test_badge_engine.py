from datetime import date

from skillexchange.crud import user as user_crud
from skillexchange.models.session import Session, SessionStatus
from skillexchange.services import badge_service
from skillexchange.services.badge_service import BADGE_TIERS, eligible_badges, evaluate_badges


def _completed_sessions(db, teacher, learner, count):
    for i in range(count):
        db.add(Session(
            teacher_id=teacher.id,
            learner_id=learner.id,
            skill="Guitar",
            status=SessionStatus.COMPLETED.value,
            date=date(2029, 1, 1),
            time="10:00",
            meeting_room=f"session_{teacher.id}_{i}",
        ))
    db.commit()


def test_tier_table_is_monotonic():
    assert len(BADGE_TIERS) == 20
    assert BADGE_TIERS[0].name == "Beginner"
    assert BADGE_TIERS[-1].name == "Legendary"
    for lower, higher in zip(BADGE_TIERS, BADGE_TIERS[1:]):
        assert higher.level == lower.level + 1
        assert higher.sessions_required > lower.sessions_required
        assert higher.credits_required > lower.credits_required


def test_beginner_needs_both_thresholds():
    assert eligible_badges(10, 100) == ["Beginner"]
    assert eligible_badges(9, 10_000) == []
    assert eligible_badges(10_000, 99.5) == []


def test_crossing_several_tiers_at_once():
    assert eligible_badges(100, 1000) == ["Beginner", "Quick Learner", "Rising Star"]


def test_evaluate_grants_once_and_never_removes(db_session, make_user):
    teacher = make_user("Teacher", teach=["Guitar"])
    learner = make_user("Learner")
    _completed_sessions(db_session, teacher, learner, 10)

    profile = user_crud.get_profile(db_session, teacher.id)
    profile.credits = 99.0
    db_session.commit()
    assert evaluate_badges(db_session, teacher.id) == []

    profile.credits = 100.0
    assert evaluate_badges(db_session, teacher.id) == ["Beginner"]
    db_session.commit()

    # idempotent
    assert evaluate_badges(db_session, teacher.id) == []

    profile.credits = 0.0
    assert evaluate_badges(db_session, teacher.id) == []
    db_session.commit()
    db_session.refresh(profile)
    assert profile.badges == ["Beginner"]


def test_evaluate_counts_only_completed_taught_sessions(db_session, make_user):
    teacher = make_user("Teacher", teach=["Guitar"])
    learner = make_user("Learner")
    _completed_sessions(db_session, teacher, learner, 9)
    # taught by the learner, not the teacher
    _completed_sessions(db_session, learner, teacher, 5)

    profile = user_crud.get_profile(db_session, teacher.id)
    profile.credits = 500.0
    db_session.commit()

    assert badge_service.evaluate_badges(db_session, teacher.id) == []
