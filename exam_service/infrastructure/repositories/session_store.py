import copy
import logging
import threading
from datetime import timezone
from typing import Dict, Optional, Protocol, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DbSession

from exam_service.application.exams.errors import SessionAlreadyActive
from exam_service.application.exams.models import Session
from exam_service.infrastructure.db.models.exam_session_model import ExamSessionModel

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    def insert_if_absent(self, session: Session) -> Session:
        """
        Stores `session` unless the same (user_id, exam_id) already has an
        active one, in which case SessionAlreadyActive is raised.
        The check and the insert happen as one atomic step.
        """
        ...

    def get(self, session_id: str) -> Optional[Session]:
        ...

    def close(self, session_id: str, answers: Dict) -> bool:
        """
        Records the final answers and deactivates the session.
        Returns False when the session is unknown or already closed.
        """
        ...

    def reopen(self, session_id: str) -> bool:
        """
        Reactivates a closed session whose attempt could not be recorded.
        Returns False when the session is unknown, still active, or another
        session for the same (user_id, exam_id) became active meanwhile.
        """
        ...


class InMemorySessionStore:
    """Process-local store. Data is lost on restart and not shared between workers."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._active: Dict[Tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def insert_if_absent(self, session: Session) -> Session:
        key = (session.user_id, session.exam_id)
        with self._lock:
            if key in self._active:
                raise SessionAlreadyActive()
            self._sessions[session.id] = copy.deepcopy(session)
            self._active[key] = session.id
        return session

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            return copy.deepcopy(session) if session else None

    def close(self, session_id: str, answers: Dict) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or not session.is_active:
                return False
            session.answers = dict(answers)
            session.is_active = False
            self._active.pop((session.user_id, session.exam_id), None)
            return True

    def reopen(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.is_active:
                return False
            key = (session.user_id, session.exam_id)
            if key in self._active:
                return False
            session.is_active = True
            self._active[key] = session.id
            return True


class SqlSessionStore:
    """
    Relational store. The partial unique index on (user_id, exam_id) for
    active rows makes concurrent starts race-free across processes.
    """

    def __init__(self, db: DbSession):
        self.db = db

    def insert_if_absent(self, session: Session) -> Session:
        row = ExamSessionModel(
            id=session.id,
            exam_id=session.exam_id,
            user_id=session.user_id,
            started_at=session.started_at,
            time_limit_minutes=session.time_limit_minutes,
            answers=dict(session.answers),
            is_active=True,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(
                f"Active session already exists for user {session.user_id}, exam {session.exam_id}"
            )
            raise SessionAlreadyActive()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating session {session.id}: {e}", exc_info=True)
            raise
        return session

    def get(self, session_id: str) -> Optional[Session]:
        row = self.db.query(ExamSessionModel).filter(ExamSessionModel.id == session_id).first()
        return _to_domain(row) if row else None

    def close(self, session_id: str, answers: Dict) -> bool:
        try:
            updated = (
                self.db.query(ExamSessionModel)
                .filter(
                    ExamSessionModel.id == session_id,
                    ExamSessionModel.is_active.is_(True),
                )
                .update(
                    {"answers": dict(answers), "is_active": False},
                    synchronize_session=False,
                )
            )
            self.db.commit()
            return updated == 1
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error closing session {session_id}: {e}", exc_info=True)
            raise

    def reopen(self, session_id: str) -> bool:
        try:
            updated = (
                self.db.query(ExamSessionModel)
                .filter(
                    ExamSessionModel.id == session_id,
                    ExamSessionModel.is_active.is_(False),
                )
                .update({"is_active": True}, synchronize_session=False)
            )
            self.db.commit()
            return updated == 1
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Cannot reopen session {session_id}: another session is active")
            return False
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error reopening session {session_id}: {e}", exc_info=True)
            raise


def _to_domain(row: ExamSessionModel) -> Session:
    return Session(
        id=row.id,
        exam_id=row.exam_id,
        user_id=row.user_id,
        started_at=as_utc(row.started_at),
        time_limit_minutes=row.time_limit_minutes,
        answers=dict(row.answers or {}),
        is_active=row.is_active,
    )


def as_utc(value):
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
