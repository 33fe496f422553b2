from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Protocol, Sequence

from .models import Answer, ExamDefinition, Question, QuestionResult, ScoreReport

logger = logging.getLogger(__name__)

DEFAULT_YAML_KEYWORDS = ("apiVersion", "kind", "metadata", "spec")
DEFAULT_SUCCESS_MARKER = "successfully"


class ScoringStrategy(Protocol):
    def award(
        self, question: Question, answer: Optional[Answer], execution_log: Optional[str]
    ) -> float:
        """
        Returns the points earned by `answer` for `question`, between 0 and question.points.
        """
        ...


# ---------------------------
# Strategies
# ---------------------------

class ExactMatchStrategy:
    """
    Full points when the answer matches the expected one, nothing otherwise.

    Multi-select answers are compared as sets: same length and every submitted
    element among the expected ones. Duplicates are not collapsed first.
    Single answers are compared as-is (case-sensitive, no trimming).
    """

    def award(self, question, answer, execution_log=None):
        return question.points if self.matches(question, answer) else 0

    @staticmethod
    def matches(question: Question, answer: Optional[Answer]) -> bool:
        expected = question.correct_answer
        if question.is_multi_select:
            if not isinstance(answer, (list, tuple)):
                return False
            return len(answer) == len(expected) and all(a in expected for a in answer)
        return isinstance(answer, str) and answer == expected


class KeywordCoverageStrategy:
    """Partial credit for manifests: share of required keywords present in the answer."""

    def __init__(self, keywords: Sequence[str] = DEFAULT_YAML_KEYWORDS):
        if not keywords:
            raise ValueError("At least one keyword is required")
        self.keywords = tuple(keywords)

    def award(self, question, answer, execution_log=None):
        if not isinstance(answer, str) or not answer:
            return 0
        found = [k for k in self.keywords if k in answer]
        return len(found) / len(self.keywords) * question.points


class ExecutionLogStrategy:
    """Full points when the submitted kubectl output reports success."""

    def __init__(self, success_marker: str = DEFAULT_SUCCESS_MARKER):
        self.success_marker = success_marker

    def award(self, question, answer, execution_log=None):
        if execution_log and self.success_marker in execution_log:
            return question.points
        return 0


# ---------------------------
# Engine
# ---------------------------

class ScoringEngine:
    """
    Scores a full answer set against an exam definition.

    Strategies are looked up by question type; types without a registered
    strategy fall back to `default`. A wrong or missing answer is a normal
    result, never an error.
    """

    def __init__(
        self,
        strategies: Optional[Mapping[str, ScoringStrategy]] = None,
        default: Optional[ScoringStrategy] = None,
    ):
        self._strategies: Dict[str, ScoringStrategy] = dict(strategies or {})
        self._default = default or ExactMatchStrategy()

    def strategy_for(self, question_type: str) -> ScoringStrategy:
        return self._strategies.get(question_type, self._default)

    def score(
        self,
        exam: ExamDefinition,
        answers: Mapping[str, Answer],
        execution_log: Optional[str] = None,
    ) -> ScoreReport:
        results = []
        total_score = 0
        correct_answers = 0

        for question in exam.questions:
            user_answer = answers.get(question.id)
            strategy = self.strategy_for(question.type)
            awarded = strategy.award(question, user_answer, execution_log)
            awarded = max(0, min(awarded, question.points))

            is_correct = awarded == question.points
            if is_correct:
                correct_answers += 1
            total_score += awarded

            results.append(
                QuestionResult(
                    question_id=question.id,
                    is_correct=is_correct,
                    user_answer=user_answer,
                    correct_answer=_as_answer(question.correct_answer),
                    explanation=question.explanation,
                    points_awarded=awarded,
                )
            )

        logger.debug(
            f"Scored exam {exam.id}: {total_score}/{exam.total_points}, "
            f"{correct_answers}/{len(exam.questions)} correct"
        )
        return ScoreReport(
            results=results,
            total_score=total_score,
            total_points=exam.total_points,
            correct_answers=correct_answers,
        )


def _as_answer(value):
    return list(value) if isinstance(value, tuple) else value


def build_scoring_engine(mode: str = "exact") -> ScoringEngine:
    """
    "exact" compares every answer against the expected one.
    "heuristic" grades YAML manifests by keyword coverage and kubectl tasks
    from the execution log, and keeps exact matching for multiple choice.
    """
    if mode == "exact":
        return ScoringEngine()
    if mode == "heuristic":
        return ScoringEngine(
            strategies={
                "multiple_choice": ExactMatchStrategy(),
                "yaml_generation": KeywordCoverageStrategy(),
                "kubectl_command": ExecutionLogStrategy(),
            }
        )
    raise ValueError(f"Unknown scoring mode '{mode}'")
