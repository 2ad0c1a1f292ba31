"""作答历史与回顾相关响应模型。"""
from pydantic import BaseModel, Field


class AttemptListItem(BaseModel):
    attemptId: str
    examId: str
    examTitle: str | None = None
    score: int
    submittedAt: str


class AttemptListResponse(BaseModel):
    items: list[AttemptListItem] = Field(default_factory=list)
    total: int = 0


class ReviewOption(BaseModel):
    key: str
    text: str
    isCorrect: bool = False
    isSelected: bool = False


class ReviewItem(BaseModel):
    questionId: str
    questionText: str
    options: list[ReviewOption] = Field(default_factory=list)
    selectedOption: str | None = None
    isCorrect: bool = Field(False, description="交卷时计算并保存的结果，不重新判分")
    isSkipped: bool = False
    solution: str
    hasSolution: bool = False


class AttemptReviewResponse(BaseModel):
    attemptId: str
    examId: str
    examTitle: str | None = None
    score: int
    submittedAt: str
    items: list[ReviewItem] = Field(default_factory=list)
