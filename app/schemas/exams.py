"""考试信息、考试会话（开始 / 作答 / 交卷）相关请求/响应模型。"""
from pydantic import BaseModel, Field


class ExamInfoResponse(BaseModel):
    examId: str
    title: str
    description: str | None = None
    durationMinutes: int = Field(0, description="显式时长，或由开始/结束时间推算；0 表示不限时")
    startTime: str | None = None
    endTime: str | None = None
    questionCount: int = 0


class SessionQuestionItem(BaseModel):
    """作答时下发的题目，不含正确答案与解析。"""
    questionId: str
    questionText: str
    options: dict[str, str] = Field(default_factory=dict)


class ScoreSummary(BaseModel):
    correct: int
    wrong: int
    skipped: int
    total: int
    percent: int


class SubmitResponse(BaseModel):
    attemptId: str
    submittedAt: str
    reason: str = Field("manual", description="manual 手动交卷 / timeout 倒计时结束自动交卷")
    score: ScoreSummary
    answersSaved: bool = True
    warnings: list[str] = Field(default_factory=list, description="answers_incomplete / empty_exam")


class SessionStateResponse(BaseModel):
    sessionId: str
    examId: str
    title: str
    status: str = Field(..., description="not_started / in_progress / submitted")
    timeLeft: int | None = Field(None, description="剩余秒数，不限时为 null")
    answers: dict[str, str] = Field(default_factory=dict)
    questions: list[SessionQuestionItem] = Field(default_factory=list)
    result: SubmitResponse | None = None


class SelectAnswerRequest(BaseModel):
    question_id: str = Field(..., alias="questionId")
    option: str = Field(..., min_length=1, max_length=8, description="选项字母，如 a")

    model_config = {"populate_by_name": True}
