from sqlalchemy import Column, ForeignKey, String, Text

from app.models.base import TimestampMixin
from app.core.db import Base

OPTION_COLUMNS = ("option_a", "option_b", "option_c", "option_d")


class ExamQuestion(Base, TimestampMixin):
    __tablename__ = "exam_questions"

    id = Column(String(36), primary_key=True)
    exam_id = Column(String(36), ForeignKey("exams.id"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    option_a = Column(Text, nullable=True)
    option_b = Column(Text, nullable=True)
    option_c = Column(Text, nullable=True)
    option_d = Column(Text, nullable=True)
    # 历史数据里既可能是选项字母（a-d），也可能是正确选项的原文
    correct_answer = Column(Text, nullable=True)
    solution = Column(Text, nullable=True)

    @property
    def options(self) -> dict[str, str]:
        """{'a': 'text', ...}，跳过为空的选项列。"""
        out: dict[str, str] = {}
        for col in OPTION_COLUMNS:
            value = getattr(self, col)
            if value is not None:
                out[col[-1]] = value
        return out
