from sqlalchemy import Column, DateTime
from sqlalchemy.sql import func

from app.core.db import Base


class TimestampMixin:
    # exam_attempts / attempt_answers 只插入不更新，updated_at 始终等于 created_at
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
