"""Pytest bootstrap for project imports and shared fixtures."""

from datetime import datetime
from pathlib import Path
import os
import sys

# Settings are read at import time; point them at throwaway values first.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("EMAIL_NOTIFICATIONS_ENABLED", "false")

# Ensure project root is on sys.path so `import skillexchange` works
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from skillexchange.database import Base
from skillexchange.models.user import User
from skillexchange.crud import user as user_crud
from skillexchange.services import session_service
from skillexchange.services.sentiment import SentimentResult

# Fixed clock: sessions are scheduled on 2030-01-07 from 10:00 UTC.
NOW = datetime(2030, 1, 7, 9, 0)
SESSION_DATE = "2030-01-07"
SESSION_TIME = "10:00"
START = datetime(2030, 1, 7, 10, 0)


class StubAnalyzer:
    """Sentiment analyzer returning a fixed score."""

    def __init__(self, score: int):
        self.score = score
        self.calls = []

    def analyze(self, text: str) -> SentimentResult:
        self.calls.append(text)
        return SentimentResult(score=self.score)


@pytest.fixture
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(db_session):
    def _make(name, teach=None, learn=None, role="student"):
        user = User(
            name=name,
            email=f"{name.lower().replace(' ', '.')}@test.edu",
            role=role,
            is_active=True,
        )
        db_session.add(user)
        db_session.flush()
        profile = user_crud.get_or_create_profile(db_session, user.id)
        profile.teach_skills = list(teach or [])
        profile.learn_skills = list(learn or [])
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def befriend(db_session):
    def _befriend(user, *others):
        for other in others:
            user_crud.add_friendship(db_session, user.id, other.id)
        db_session.commit()

    return _befriend


@pytest.fixture
def schedule(db_session):
    """Create an upcoming session on the fixed clock."""
    def _schedule(teacher, learners, skill="Guitar", session_date=SESSION_DATE, time=SESSION_TIME, **kwargs):
        return session_service.create_session(
            db_session,
            teacher,
            participant_ids=[learner.id for learner in learners],
            skill=skill,
            session_date=session_date,
            time=time,
            now=kwargs.pop("now", NOW),
            **kwargs,
        )

    return _schedule


@pytest.fixture
def run_session(db_session, schedule):
    """Schedule, join at start and complete as the teacher."""
    def _run(teacher, learners, skill="Guitar", session_date=SESSION_DATE):
        session = schedule(teacher, learners, skill=skill, session_date=session_date)
        start = session_service.session_start(session)
        session_service.join_session(db_session, session.id, teacher, now=start)
        session_service.complete_session(db_session, session.id, teacher)
        db_session.refresh(session)
        return session

    return _run
