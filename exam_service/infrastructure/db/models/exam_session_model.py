from sqlalchemy import Column, String, Integer, DateTime, Boolean, JSON, Index, text
from ..base import Base


class ExamSessionModel(Base):
    __tablename__ = "exam_sessions"

    id = Column(String(36), primary_key=True)
    exam_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    time_limit_minutes = Column(Integer, nullable=False)
    answers = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)

    # At most one open session per (user, exam)
    __table_args__ = (
        Index(
            "uq_exam_sessions_active_user_exam",
            "user_id",
            "exam_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )
