from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from app.models.base import TimestampMixin
from app.core.db import Base


class ExamAttempt(Base, TimestampMixin):
    __tablename__ = "exam_attempts"

    id = Column(String(36), primary_key=True)
    exam_id = Column(String(36), ForeignKey("exams.id"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    score = Column(Integer, nullable=False)
