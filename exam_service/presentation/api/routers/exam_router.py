import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from exam_service.application.exams.errors import ExamServiceError
from exam_service.application.exams.session_service import ExamSessionService
from exam_service.infrastructure.catalog.exam_catalog import ExamCatalog
from exam_service.presentation.dependencies import (
    get_catalog,
    get_current_user,
    get_exam_service,
)
from exam_service.presentation.schemas.exam_schema import (
    AttemptHistoryResponse,
    AttemptOut,
    ExamDetailResponse,
    ExamListResponse,
    ExamOut,
    ExamPublicOut,
    QuestionResultOut,
    StartSessionResponse,
    SubmissionResultOut,
    SubmitRequest,
    SubmitResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exams", tags=["Exams"])


def _http_error(e: ExamServiceError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


# --------------------------------------------------
# 1. Catalog
# --------------------------------------------------
@router.get("", response_model=ExamListResponse)
def list_exams(
    category: Optional[str] = None,
    difficulty: Optional[int] = Query(None, ge=1, le=5),
    tags: Optional[str] = Query(None, description="Comma-separated, matches any"),
    current_user: dict = Depends(get_current_user),
    catalog: ExamCatalog = Depends(get_catalog),
):
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
    exams = catalog.list_exams(category=category, difficulty=difficulty, tags=tag_list)
    logger.info(f"User {current_user['user_id']} listed {len(exams)} exams")
    return ExamListResponse(
        exams=[ExamOut.model_validate(e) for e in exams],
        total=len(exams),
    )


@router.get("/{exam_id}", response_model=ExamDetailResponse)
def get_exam(
    exam_id: str,
    current_user: dict = Depends(get_current_user),
    catalog: ExamCatalog = Depends(get_catalog),
):
    """
    Full exam definition, answers included. Meant for authenticated internal use.
    """
    try:
        exam = catalog.get_exam(exam_id)
        return ExamDetailResponse(exam=ExamOut.model_validate(exam))
    except ExamServiceError as e:
        raise _http_error(e)


# --------------------------------------------------
# 2. Start
# --------------------------------------------------
@router.post("/{exam_id}/start", response_model=StartSessionResponse)
def start_exam(
    exam_id: str,
    current_user: dict = Depends(get_current_user),
    service: ExamSessionService = Depends(get_exam_service),
):
    """
    Opens a session for the current user. Questions come back without answers
    or explanations.
    """
    user_id = current_user["user_id"]
    try:
        logger.info(f"User {user_id} starting exam {exam_id}")
        started = service.start(user_id, exam_id)
        return StartSessionResponse(
            session_id=started.session_id,
            exam=ExamPublicOut.model_validate(started.exam),
            time_remaining=started.time_remaining_seconds,
        )
    except ExamServiceError as e:
        logger.warning(f"Could not start exam {exam_id} for user {user_id}: {e.message}")
        raise _http_error(e)


# --------------------------------------------------
# 3. Submit
# --------------------------------------------------
@router.post("/{exam_id}/submit", response_model=SubmitResponse)
def submit_exam(
    exam_id: str,
    payload: SubmitRequest,
    current_user: dict = Depends(get_current_user),
    service: ExamSessionService = Depends(get_exam_service),
):
    user_id = current_user["user_id"]
    try:
        logger.info(f"User {user_id} submitting session {payload.session_id} for exam {exam_id}")
        result = service.submit(
            user_id=user_id,
            exam_id=exam_id,
            session_id=payload.session_id,
            answers=payload.answers,
            execution_log=payload.execution_log,
        )
    except ExamServiceError as e:
        logger.warning(f"Submit failed for session {payload.session_id}: {e.message}")
        raise _http_error(e)

    return SubmitResponse(
        result=SubmissionResultOut(
            score=result.score,
            total_points=result.total_points,
            percentage=result.percentage,
            passed=result.passed,
            time_spent=result.time_spent_seconds,
            correct_answers=result.correct_answers,
            total_questions=result.total_questions,
            results=[QuestionResultOut.model_validate(r) for r in result.results],
        )
    )


# --------------------------------------------------
# 4. History
# --------------------------------------------------
@router.get("/{exam_id}/results", response_model=AttemptHistoryResponse)
def get_results(
    exam_id: str,
    current_user: dict = Depends(get_current_user),
    service: ExamSessionService = Depends(get_exam_service),
):
    user_id = current_user["user_id"]
    try:
        attempts = service.results(user_id, exam_id)
    except ExamServiceError as e:
        logger.warning(f"No results for user {user_id} on exam {exam_id}")
        raise _http_error(e)

    return AttemptHistoryResponse(
        attempts=[AttemptOut.model_validate(a) for a in attempts],
        total=len(attempts),
        best_percentage=max(a.percentage for a in attempts),
    )
