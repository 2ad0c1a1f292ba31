from sqlalchemy import Boolean, Column, ForeignKey, String

from app.models.base import TimestampMixin
from app.core.db import Base


class AttemptAnswer(Base, TimestampMixin):
    __tablename__ = "attempt_answers"

    id = Column(String(36), primary_key=True)
    attempt_id = Column(String(36), ForeignKey("exam_attempts.id"), nullable=False, index=True)
    question_id = Column(String(36), ForeignKey("exam_questions.id"), nullable=False, index=True)
    # 未作答为 NULL
    selected_option = Column(String(8), nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
