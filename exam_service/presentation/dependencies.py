import logging

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from exam_service import config
from exam_service.application.exams.scoring import build_scoring_engine
from exam_service.application.exams.session_service import ExamSessionService
from exam_service.infrastructure.catalog.exam_catalog import ExamCatalog, get_default_catalog
from exam_service.infrastructure.db.session import SessionLocal
from exam_service.infrastructure.repositories.attempt_repository import (
    InMemoryAttemptRepository,
    SqlAttemptRepository,
)
from exam_service.infrastructure.repositories.session_store import (
    InMemorySessionStore,
    SqlSessionStore,
)
from exam_service.infrastructure.security.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# auto_error=False so a missing token is reported by get_current_user as 401
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

# Shared by every request when SESSION_BACKEND=memory
_memory_sessions = InMemorySessionStore()
_memory_attempts = InMemoryAttemptRepository()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(token: str = Depends(oauth2_scheme)) -> dict:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as e:
        logger.warning(f"Token validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    logger.debug(f"Validated token for user_id: {user_id}")
    return {"user_id": str(user_id)}


def get_catalog() -> ExamCatalog:
    return get_default_catalog()


def get_exam_service(
    db: Session = Depends(get_db),
    catalog: ExamCatalog = Depends(get_catalog),
) -> ExamSessionService:
    if config.SESSION_BACKEND == "memory":
        sessions, attempts = _memory_sessions, _memory_attempts
    else:
        sessions, attempts = SqlSessionStore(db), SqlAttemptRepository(db)

    return ExamSessionService(
        catalog=catalog,
        sessions=sessions,
        attempts=attempts,
        scoring=build_scoring_engine(config.SCORING_MODE),
        enforce_time_limit=config.ENFORCE_TIME_LIMIT,
        grace_seconds=config.TIME_LIMIT_GRACE_SECONDS,
    )
