from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from .errors import InvalidExamDefinition

# A submitted or expected answer: one string, or a set of strings for multi-select
Answer = Union[str, Tuple[str, ...], List[str]]

QUESTION_TYPES = ("multiple_choice", "yaml_generation", "kubectl_command")
EXAM_CATEGORIES = ("concept", "yaml", "practical")


# ---------------------------
# Catalog
# ---------------------------

@dataclass(frozen=True)
class Question:
    id: str
    type: str
    prompt: str
    correct_answer: Union[str, Tuple[str, ...]]
    explanation: str
    points: int
    difficulty: int = 1
    options: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.type not in QUESTION_TYPES:
            raise InvalidExamDefinition(f"Unknown question type '{self.type}' for {self.id}")
        if self.points < 0:
            raise InvalidExamDefinition(f"Question {self.id} has negative points")

    @property
    def is_multi_select(self) -> bool:
        return isinstance(self.correct_answer, tuple)

    def redacted(self) -> Dict:
        """Question as shown to a candidate: no answer, no explanation."""
        return {
            "id": self.id,
            "type": self.type,
            "prompt": self.prompt,
            "options": list(self.options),
            "points": self.points,
            "difficulty": self.difficulty,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class ExamDefinition:
    id: str
    title: str
    category: str
    difficulty: int
    time_limit_minutes: int
    passing_score_percent: float
    questions: Tuple[Question, ...]
    description: str = ""
    tags: Tuple[str, ...] = ()
    prerequisites: Tuple[str, ...] = ()
    is_active: bool = True
    max_attempts: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.category not in EXAM_CATEGORIES:
            raise InvalidExamDefinition(f"Unknown category '{self.category}' for exam {self.id}")
        if not 1 <= self.difficulty <= 5:
            raise InvalidExamDefinition(f"Exam {self.id} difficulty must be between 1 and 5")
        if not 0 <= self.passing_score_percent <= 100:
            raise InvalidExamDefinition(f"Exam {self.id} passing score must be between 0 and 100")
        if self.total_points <= 0:
            raise InvalidExamDefinition(f"Exam {self.id} must be worth more than 0 points")
        ids = [q.id for q in self.questions]
        if len(ids) != len(set(ids)):
            raise InvalidExamDefinition(f"Exam {self.id} has duplicate question ids")

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    def redacted(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "difficulty": self.difficulty,
            "time_limit_minutes": self.time_limit_minutes,
            "passing_score_percent": self.passing_score_percent,
            "tags": list(self.tags),
            "prerequisites": list(self.prerequisites),
            "questions": [q.redacted() for q in self.questions],
        }


# ---------------------------
# Sessions & attempts
# ---------------------------

@dataclass
class Session:
    id: str
    exam_id: str
    user_id: str
    started_at: datetime
    time_limit_minutes: int
    answers: Dict[str, Answer] = field(default_factory=dict)
    is_active: bool = True


@dataclass(frozen=True)
class Attempt:
    id: str
    exam_id: str
    user_id: str
    answers: Dict[str, Answer]
    score: float
    total_points: int
    percentage: int
    time_spent_seconds: int
    started_at: datetime
    completed_at: datetime
    passed: bool
    session_id: Optional[str] = None


@dataclass(frozen=True)
class QuestionResult:
    question_id: str
    is_correct: bool
    user_answer: Optional[Answer]
    correct_answer: Answer
    explanation: str
    points_awarded: float = 0


@dataclass(frozen=True)
class ScoreReport:
    results: List[QuestionResult]
    total_score: float
    total_points: int
    correct_answers: int


@dataclass(frozen=True)
class StartedSession:
    session_id: str
    exam: Dict
    time_remaining_seconds: int


@dataclass(frozen=True)
class SubmissionResult:
    score: float
    total_points: int
    percentage: int
    passed: bool
    time_spent_seconds: int
    correct_answers: int
    total_questions: int
    results: List[QuestionResult]
