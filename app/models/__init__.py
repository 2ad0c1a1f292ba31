from app.core.db import Base
from app.models.base import TimestampMixin
from app.models.user import User
from app.models.exam import Exam
from app.models.question import ExamQuestion
from app.models.attempt import ExamAttempt
from app.models.attempt_answer import AttemptAnswer

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "Exam",
    "ExamQuestion",
    "ExamAttempt",
    "AttemptAnswer",
]
