from sqlalchemy import Column, String, Integer, Float, DateTime, Boolean, JSON, ForeignKey
from ..base import Base


class ExamAttemptModel(Base):
    __tablename__ = "exam_attempts"

    id = Column(String(36), primary_key=True)
    session_id = Column(String(36), ForeignKey("exam_sessions.id"), nullable=True, unique=True)
    exam_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    answers = Column(JSON, nullable=False)
    score = Column(Float, nullable=False)
    total_points = Column(Integer, nullable=False)
    percentage = Column(Integer, nullable=False)
    time_spent_seconds = Column(Integer, nullable=False)
    passed = Column(Boolean, nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=False, index=True)
