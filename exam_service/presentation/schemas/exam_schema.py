from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel

AnswerValue = Union[str, List[str]]


# ------------------ Catalog ------------------

class QuestionPublicOut(BaseModel):
    id: str
    type: str
    prompt: str
    options: List[str] = []
    points: int
    difficulty: int
    tags: List[str] = []

    class Config:
        from_attributes = True


class QuestionOut(QuestionPublicOut):
    correct_answer: AnswerValue
    explanation: str


class ExamPublicOut(BaseModel):
    id: str
    title: str
    description: str = ""
    category: str
    difficulty: int
    time_limit_minutes: int
    passing_score_percent: float
    tags: List[str] = []
    prerequisites: List[str] = []
    questions: List[QuestionPublicOut]

    class Config:
        from_attributes = True


class ExamOut(ExamPublicOut):
    questions: List[QuestionOut]
    is_active: bool
    max_attempts: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ExamListResponse(BaseModel):
    exams: List[ExamOut]
    total: int


class ExamDetailResponse(BaseModel):
    exam: ExamOut


# ------------------ Sessions ------------------

class StartSessionResponse(BaseModel):
    session_id: str
    exam: ExamPublicOut
    time_remaining: int  # seconds


class SubmitRequest(BaseModel):
    session_id: str
    answers: Dict[str, AnswerValue]
    execution_log: Optional[str] = None


class QuestionResultOut(BaseModel):
    question_id: str
    is_correct: bool
    user_answer: Optional[AnswerValue] = None
    correct_answer: AnswerValue
    explanation: str
    points_awarded: float

    class Config:
        from_attributes = True


class SubmissionResultOut(BaseModel):
    score: float
    total_points: int
    percentage: int
    passed: bool
    time_spent: int  # seconds
    correct_answers: int
    total_questions: int
    results: List[QuestionResultOut]


class SubmitResponse(BaseModel):
    result: SubmissionResultOut


# ------------------ History ------------------

class AttemptOut(BaseModel):
    id: str
    exam_id: str
    user_id: str
    answers: Dict[str, AnswerValue]
    score: float
    total_points: int
    percentage: int
    time_spent_seconds: int
    started_at: datetime
    completed_at: datetime
    passed: bool

    class Config:
        from_attributes = True


class AttemptHistoryResponse(BaseModel):
    attempts: List[AttemptOut]
    total: int
    best_percentage: int
