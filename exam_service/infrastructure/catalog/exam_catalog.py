import logging
from typing import Dict, Iterable, List, Optional

from exam_service.application.exams.errors import ExamNotFound
from exam_service.application.exams.models import ExamDefinition
from .sample_exams import SAMPLE_EXAMS

logger = logging.getLogger(__name__)


class ExamCatalog:
    """Read-only, in-process collection of exam definitions."""

    def __init__(self, exams: Iterable[ExamDefinition] = SAMPLE_EXAMS):
        self._exams: Dict[str, ExamDefinition] = {}
        for exam in exams:
            if exam.id in self._exams:
                raise ValueError(f"Duplicate exam id '{exam.id}' in catalog")
            self._exams[exam.id] = exam
        logger.info(f"Exam catalog loaded with {len(self._exams)} exams")

    def get_exam(self, exam_id: str, include_inactive: bool = False) -> ExamDefinition:
        exam = self._exams.get(exam_id)
        if exam is None or not (exam.is_active or include_inactive):
            logger.warning(f"Exam {exam_id} not found")
            raise ExamNotFound()
        return exam

    def list_exams(
        self,
        category: Optional[str] = None,
        difficulty: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> List[ExamDefinition]:
        exams = [e for e in self._exams.values() if e.is_active]

        if category:
            exams = [e for e in exams if e.category == category]
        if difficulty is not None:
            exams = [e for e in exams if e.difficulty == difficulty]
        if tags:
            wanted = set(tags)
            exams = [e for e in exams if wanted.intersection(e.tags)]

        logger.debug(
            f"Listed {len(exams)} exams (category={category}, difficulty={difficulty}, tags={tags})"
        )
        return exams


_default_catalog: Optional[ExamCatalog] = None


def get_default_catalog() -> ExamCatalog:
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = ExamCatalog()
    return _default_catalog
