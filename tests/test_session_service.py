import itertools
import threading

import pytest

from exam_service.application.exams.errors import (
    AttemptLimitReached,
    ExamNotFound,
    NoAttempts,
    SessionAlreadyActive,
    SessionExpired,
    SessionNotFound,
)
from exam_service.application.exams.models import ExamDefinition
from exam_service.application.exams.scoring import ScoringEngine
from exam_service.application.exams.session_service import ExamSessionService, percentage_of
from exam_service.infrastructure.catalog.exam_catalog import ExamCatalog
from exam_service.infrastructure.repositories.attempt_repository import InMemoryAttemptRepository
from exam_service.infrastructure.repositories.session_store import InMemorySessionStore, SqlSessionStore


def _sequential_ids():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


def _service(exams, clock, **kwargs):
    return ExamSessionService(
        catalog=ExamCatalog(exams),
        sessions=kwargs.pop("sessions", InMemorySessionStore()),
        attempts=kwargs.pop("attempts", InMemoryAttemptRepository()),
        scoring=ScoringEngine(),
        clock=clock,
        id_factory=_sequential_ids(),
        **kwargs,
    )


@pytest.fixture
def service(two_question_exam, clock):
    return _service([two_question_exam], clock)


def _with(exam, **changes):
    values = {f: getattr(exam, f) for f in exam.__dataclass_fields__}
    values.update(changes)
    return ExamDefinition(**values)


# ---------------------------
# start
# ---------------------------

def test_start_returns_redacted_exam_and_time_remaining(service):
    started = service.start("alice", "exam-small")

    assert started.session_id == "id-1"
    assert started.time_remaining_seconds == 600
    for question in started.exam["questions"]:
        assert "correct_answer" not in question
        assert "explanation" not in question
    assert started.exam["questions"][0]["options"] == ["Pod", "Service", "Node"]


def test_start_unknown_exam(service):
    with pytest.raises(ExamNotFound):
        service.start("alice", "nope")


def test_start_inactive_exam_is_not_found(two_question_exam, clock):
    service = _service([_with(two_question_exam, is_active=False)], clock)
    with pytest.raises(ExamNotFound):
        service.start("alice", "exam-small")


def test_second_start_while_active_is_rejected(service):
    service.start("alice", "exam-small")
    with pytest.raises(SessionAlreadyActive):
        service.start("alice", "exam-small")


def test_other_user_can_start_same_exam(service):
    service.start("alice", "exam-small")
    assert service.start("bob", "exam-small").session_id == "id-2"


def test_concurrent_starts_create_one_session(two_question_exam, clock):
    sessions = InMemorySessionStore()
    service = _service([two_question_exam], clock, sessions=sessions)
    outcomes = []
    barrier = threading.Barrier(8)

    def attempt_start():
        barrier.wait()
        try:
            service.start("alice", "exam-small")
            outcomes.append("ok")
        except SessionAlreadyActive:
            outcomes.append("rejected")

    threads = [threading.Thread(target=attempt_start) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("rejected") == 7


def test_start_allowed_again_after_submit(service):
    first = service.start("alice", "exam-small")
    service.submit("alice", "exam-small", first.session_id, {"q1": "Pod"})

    assert service.start("alice", "exam-small").session_id != first.session_id


def test_attempt_limit(two_question_exam, clock):
    service = _service([_with(two_question_exam, max_attempts=1)], clock)
    started = service.start("alice", "exam-small")
    service.submit("alice", "exam-small", started.session_id, {})

    with pytest.raises(AttemptLimitReached):
        service.start("alice", "exam-small")


# ---------------------------
# submit
# ---------------------------

def test_submit_perfect_score(service, clock):
    started = service.start("alice", "exam-small")
    clock.advance(minutes=4, seconds=5)

    result = service.submit("alice", "exam-small", started.session_id, {"q1": "Pod", "q2": ["B", "A"]})

    assert result.score == 30
    assert result.total_points == 30
    assert result.percentage == 100
    assert result.passed is True
    assert result.correct_answers == 2
    assert result.total_questions == 2
    assert result.time_spent_seconds == 245


def test_submit_wrong_and_missing_answers(service):
    started = service.start("alice", "exam-small")

    result = service.submit("alice", "exam-small", started.session_id, {"q1": "Service"})

    assert result.score == 0
    assert result.correct_answers == 0
    assert result.percentage == 0
    assert result.passed is False


def test_submit_twice_is_session_not_found(service):
    started = service.start("alice", "exam-small")
    service.submit("alice", "exam-small", started.session_id, {"q1": "Pod"})

    with pytest.raises(SessionNotFound):
        service.submit("alice", "exam-small", started.session_id, {"q1": "Pod"})


class FailingOnceAttempts(InMemoryAttemptRepository):
    def __init__(self):
        super().__init__()
        self.failures = 0

    def add(self, attempt):
        if self.failures == 0:
            self.failures += 1
            raise RuntimeError("attempt store unavailable")
        return super().add(attempt)


@pytest.mark.parametrize("backend", ["memory", "sql"])
def test_failed_attempt_write_keeps_session_open(two_question_exam, clock, db_session, backend):
    sessions = InMemorySessionStore() if backend == "memory" else SqlSessionStore(db_session)
    attempts = FailingOnceAttempts()
    service = _service([two_question_exam], clock, sessions=sessions, attempts=attempts)
    started = service.start("alice", "exam-small")

    with pytest.raises(RuntimeError):
        service.submit("alice", "exam-small", started.session_id, {"q1": "Pod"})

    assert sessions.get(started.session_id).is_active is True

    result = service.submit("alice", "exam-small", started.session_id, {"q1": "Pod"})
    assert result.score == 10
    assert len(service.results("alice", "exam-small")) == 1


def test_submit_unknown_session(service):
    with pytest.raises(SessionNotFound):
        service.submit("alice", "exam-small", "never-started", {})


def test_submit_with_someone_elses_session(service):
    started = service.start("alice", "exam-small")

    with pytest.raises(SessionNotFound):
        service.submit("mallory", "exam-small", started.session_id, {"q1": "Pod"})

    # alice's session is untouched
    result = service.submit("alice", "exam-small", started.session_id, {"q1": "Pod"})
    assert result.score == 10


def test_submit_against_other_exam_id(two_question_exam, clock):
    other = _with(two_question_exam, id="exam-other")
    service = _service([two_question_exam, other], clock)
    started = service.start("alice", "exam-small")

    with pytest.raises(SessionNotFound):
        service.submit("alice", "exam-other", started.session_id, {})


def test_late_submit_scores_normally_by_default(service, clock):
    started = service.start("alice", "exam-small")
    clock.advance(hours=3)

    result = service.submit("alice", "exam-small", started.session_id, {"q1": "Pod"})
    assert result.score == 10
    assert result.time_spent_seconds == 3 * 3600


def test_enforced_time_limit_rejects_late_submit(two_question_exam, clock):
    service = _service([two_question_exam], clock, enforce_time_limit=True, grace_seconds=30)
    started = service.start("alice", "exam-small")
    clock.advance(minutes=10, seconds=31)

    with pytest.raises(SessionExpired):
        service.submit("alice", "exam-small", started.session_id, {"q1": "Pod"})

    # expired session is closed and recorded nothing
    with pytest.raises(NoAttempts):
        service.results("alice", "exam-small")
    assert service.start("alice", "exam-small")


def test_enforced_time_limit_accepts_submit_within_grace(two_question_exam, clock):
    service = _service([two_question_exam], clock, enforce_time_limit=True, grace_seconds=30)
    started = service.start("alice", "exam-small")
    clock.advance(minutes=10, seconds=30)

    assert service.submit("alice", "exam-small", started.session_id, {"q1": "Pod"}).score == 10


@pytest.mark.parametrize(
    "q1_points, q2_points, answers, expected_percentage, expected_passed",
    [
        (70, 30, {"q1": "Pod"}, 70, True),
        (69, 31, {"q1": "Pod"}, 69, False),
    ],
)
def test_pass_boundary_is_inclusive(
    two_question_exam, clock, q1_points, q2_points, answers, expected_percentage, expected_passed
):
    q1, q2 = two_question_exam.questions
    exam = _with(
        two_question_exam,
        questions=(_with_points(q1, q1_points), _with_points(q2, q2_points)),
    )
    service = _service([exam], clock)
    started = service.start("alice", "exam-small")

    result = service.submit("alice", "exam-small", started.session_id, answers)

    assert result.percentage == expected_percentage
    assert result.passed is expected_passed


def _with_points(question, points):
    values = {f: getattr(question, f) for f in question.__dataclass_fields__}
    values["points"] = points
    return type(question)(**values)


@pytest.mark.parametrize(
    "score, total, expected",
    [(30, 30, 100), (0, 30, 0), (10, 30, 33), (20, 30, 67), (1, 8, 13), (5, 8, 63), (15.5, 25, 62)],
)
def test_percentage_rounding(score, total, expected):
    assert percentage_of(score, total) == expected


# ---------------------------
# results
# ---------------------------

def test_results_newest_first(service, clock):
    first = service.start("alice", "exam-small")
    service.submit("alice", "exam-small", first.session_id, {"q1": "Pod"})
    clock.advance(minutes=5)
    second = service.start("alice", "exam-small")
    clock.advance(minutes=1)
    service.submit("alice", "exam-small", second.session_id, {"q1": "Pod", "q2": ["A", "B"]})

    attempts = service.results("alice", "exam-small")

    assert [a.session_id for a in attempts] == [second.session_id, first.session_id]
    assert attempts[0].score == 30
    assert attempts[0].passed is True
    assert attempts[0].time_spent_seconds == 60
    assert attempts[1].percentage == 33


def test_results_are_scoped_to_user(service):
    started = service.start("alice", "exam-small")
    service.submit("alice", "exam-small", started.session_id, {})

    with pytest.raises(NoAttempts):
        service.results("bob", "exam-small")


def test_results_without_attempts(service):
    with pytest.raises(NoAttempts):
        service.results("alice", "exam-small")
