import logging
import threading
from typing import List, Protocol

from sqlalchemy.orm import Session as DbSession

from exam_service.application.exams.models import Attempt
from exam_service.infrastructure.db.models.exam_attempt_model import ExamAttemptModel
from .session_store import as_utc

logger = logging.getLogger(__name__)


class AttemptRepository(Protocol):
    def add(self, attempt: Attempt) -> Attempt:
        ...

    def list_for(self, user_id: str, exam_id: str) -> List[Attempt]:
        """Attempts of one user on one exam, most recently completed first."""
        ...

    def count_for(self, user_id: str, exam_id: str) -> int:
        ...


class InMemoryAttemptRepository:
    def __init__(self):
        self._attempts: List[Attempt] = []
        self._lock = threading.Lock()

    def add(self, attempt: Attempt) -> Attempt:
        with self._lock:
            self._attempts.append(attempt)
        return attempt

    def list_for(self, user_id: str, exam_id: str) -> List[Attempt]:
        with self._lock:
            attempts = [
                a for a in self._attempts if a.user_id == user_id and a.exam_id == exam_id
            ]
        return sorted(attempts, key=lambda a: a.completed_at, reverse=True)

    def count_for(self, user_id: str, exam_id: str) -> int:
        return len(self.list_for(user_id, exam_id))


class SqlAttemptRepository:
    def __init__(self, db: DbSession):
        self.db = db

    def add(self, attempt: Attempt) -> Attempt:
        try:
            row = ExamAttemptModel(
                id=attempt.id,
                session_id=attempt.session_id,
                exam_id=attempt.exam_id,
                user_id=attempt.user_id,
                answers=attempt.answers,
                score=attempt.score,
                total_points=attempt.total_points,
                percentage=attempt.percentage,
                time_spent_seconds=attempt.time_spent_seconds,
                passed=attempt.passed,
                started_at=attempt.started_at,
                completed_at=attempt.completed_at,
            )
            self.db.add(row)
            self.db.commit()
            logger.info(f"Stored attempt {attempt.id} for user {attempt.user_id}")
            return attempt
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error storing attempt {attempt.id}: {e}", exc_info=True)
            raise

    def list_for(self, user_id: str, exam_id: str) -> List[Attempt]:
        rows = (
            self.db.query(ExamAttemptModel)
            .filter(
                ExamAttemptModel.user_id == user_id,
                ExamAttemptModel.exam_id == exam_id,
            )
            .order_by(ExamAttemptModel.completed_at.desc())
            .all()
        )
        return [_to_domain(r) for r in rows]

    def count_for(self, user_id: str, exam_id: str) -> int:
        return (
            self.db.query(ExamAttemptModel)
            .filter(
                ExamAttemptModel.user_id == user_id,
                ExamAttemptModel.exam_id == exam_id,
            )
            .count()
        )


def _to_domain(row: ExamAttemptModel) -> Attempt:
    return Attempt(
        id=row.id,
        session_id=row.session_id,
        exam_id=row.exam_id,
        user_id=row.user_id,
        answers=dict(row.answers or {}),
        score=row.score,
        total_points=row.total_points,
        percentage=row.percentage,
        time_spent_seconds=row.time_spent_seconds,
        passed=row.passed,
        started_at=as_utc(row.started_at),
        completed_at=as_utc(row.completed_at),
    )
