from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Mapping, Optional

from exam_service.infrastructure.catalog.exam_catalog import ExamCatalog
from exam_service.infrastructure.repositories.attempt_repository import AttemptRepository
from exam_service.infrastructure.repositories.session_store import SessionStore
from .errors import (
    AttemptLimitReached,
    NoAttempts,
    SessionExpired,
    SessionNotFound,
)
from .models import Answer, Attempt, Session, StartedSession, SubmissionResult
from .scoring import ScoringEngine

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def percentage_of(score: float, total_points: int) -> int:
    """Whole percentage, halves rounded up."""
    return int(math.floor(100 * score / total_points + 0.5))


class ExamSessionService:
    """
    Drives an exam attempt: NoSession -> Active -> Terminated.

    Only this service mutates sessions. Scoring is delegated to the
    ScoringEngine; pass/fail and timing are decided here.
    """

    def __init__(
        self,
        *,
        catalog: ExamCatalog,
        sessions: SessionStore,
        attempts: AttemptRepository,
        scoring: ScoringEngine,
        enforce_time_limit: bool = False,
        grace_seconds: int = 0,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ):
        self._catalog = catalog
        self._sessions = sessions
        self._attempts = attempts
        self._scoring = scoring
        self._enforce_time_limit = enforce_time_limit
        self._grace = timedelta(seconds=grace_seconds)
        self._clock = clock
        self._new_id = id_factory

    # ---------------------------
    # Public API
    # ---------------------------

    def start(self, user_id: str, exam_id: str) -> StartedSession:
        exam = self._catalog.get_exam(exam_id)

        if exam.max_attempts is not None:
            taken = self._attempts.count_for(user_id, exam_id)
            if taken >= exam.max_attempts:
                logger.warning(
                    f"User {user_id} reached the attempt limit ({exam.max_attempts}) for exam {exam_id}"
                )
                raise AttemptLimitReached()

        session = Session(
            id=self._new_id(),
            exam_id=exam.id,
            user_id=user_id,
            started_at=self._clock(),
            time_limit_minutes=exam.time_limit_minutes,
        )
        self._sessions.insert_if_absent(session)
        logger.info(f"User {user_id} started exam {exam_id} (session {session.id})")

        return StartedSession(
            session_id=session.id,
            exam=exam.redacted(),
            time_remaining_seconds=exam.time_limit_minutes * 60,
        )

    def submit(
        self,
        user_id: str,
        exam_id: str,
        session_id: str,
        answers: Mapping[str, Answer],
        execution_log: Optional[str] = None,
    ) -> SubmissionResult:
        session = self._sessions.get(session_id)
        if (
            session is None
            or not session.is_active
            or session.user_id != user_id
            or session.exam_id != exam_id
        ):
            logger.warning(f"Submit rejected: no active session {session_id} for user {user_id}, exam {exam_id}")
            raise SessionNotFound()

        exam = self._catalog.get_exam(exam_id, include_inactive=True)
        completed_at = self._clock()

        if self._enforce_time_limit and completed_at > self._deadline(session):
            self._sessions.close(session.id, answers)
            logger.warning(f"Session {session.id} submitted after its time limit")
            raise SessionExpired()

        report = self._scoring.score(exam, answers, execution_log)
        percentage = percentage_of(report.total_score, report.total_points)
        passed = percentage >= exam.passing_score_percent
        time_spent = int((completed_at - session.started_at).total_seconds())

        attempt = Attempt(
            id=self._new_id(),
            session_id=session.id,
            exam_id=exam.id,
            user_id=user_id,
            answers=dict(answers),
            score=report.total_score,
            total_points=report.total_points,
            percentage=percentage,
            time_spent_seconds=time_spent,
            started_at=session.started_at,
            completed_at=completed_at,
            passed=passed,
        )

        # Only the caller that flips the session to inactive records the attempt
        if not self._sessions.close(session.id, answers):
            logger.warning(f"Session {session.id} was closed concurrently")
            raise SessionNotFound()

        try:
            self._attempts.add(attempt)
        except Exception:
            logger.error(f"Could not record attempt for session {session.id}, reopening it")
            if not self._sessions.reopen(session.id):
                logger.error(f"Session {session.id} could not be reopened")
            raise

        logger.info(
            f"User {user_id} completed exam {exam_id}: {percentage}% "
            f"({'passed' if passed else 'failed'}) in {time_spent}s"
        )

        return SubmissionResult(
            score=report.total_score,
            total_points=report.total_points,
            percentage=percentage,
            passed=passed,
            time_spent_seconds=time_spent,
            correct_answers=report.correct_answers,
            total_questions=len(exam.questions),
            results=report.results,
        )

    def results(self, user_id: str, exam_id: str) -> List[Attempt]:
        attempts = self._attempts.list_for(user_id, exam_id)
        if not attempts:
            raise NoAttempts()
        return attempts

    # ---------------------------
    # Helpers
    # ---------------------------

    def _deadline(self, session: Session) -> datetime:
        return session.started_at + timedelta(minutes=session.time_limit_minutes) + self._grace
