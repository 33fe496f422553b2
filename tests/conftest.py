import os
import tempfile
from datetime import datetime, timedelta, timezone

# Configure the app before any exam_service module reads the environment
os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.mkdtemp()}/exam_service_test.db")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-the-exam-service-suite")
os.environ["SESSION_BACKEND"] = "database"
os.environ["SCORING_MODE"] = "exact"
os.environ["ENFORCE_TIME_LIMIT"] = "false"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from exam_service.application.exams.models import ExamDefinition, Question
from exam_service.infrastructure.db.base import Base
from exam_service.infrastructure.db.models.exam_session_model import ExamSessionModel  # noqa: F401
from exam_service.infrastructure.db.models.exam_attempt_model import ExamAttemptModel  # noqa: F401


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def two_question_exam():
    return ExamDefinition(
        id="exam-small",
        title="Pods and volumes",
        category="concept",
        difficulty=1,
        time_limit_minutes=10,
        passing_score_percent=70,
        questions=(
            Question(
                id="q1",
                type="multiple_choice",
                prompt="Smallest deployable unit?",
                options=("Pod", "Service", "Node"),
                correct_answer="Pod",
                explanation="Pods are the unit of scheduling.",
                points=10,
            ),
            Question(
                id="q2",
                type="multiple_choice",
                prompt="Pick A and B",
                options=("A", "B", "C"),
                correct_answer=("A", "B"),
                explanation="A and B.",
                points=20,
            ),
        ),
    )


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
