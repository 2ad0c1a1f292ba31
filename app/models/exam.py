from sqlalchemy import Column, DateTime, Integer, String, Text

from app.models.base import TimestampMixin
from app.core.db import Base


class Exam(Base, TimestampMixin):
    __tablename__ = "exams"

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # 显式时长（分钟）；为空时由 start_time / end_time 推算
    duration = Column(Integer, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
