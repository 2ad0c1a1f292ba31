"""考试流程的异常分类。每个异常都带一条可直接展示给学生的提示语（user_message）。"""


class ExamServiceError(Exception):
    user_message = "Something went wrong, please try again."

    def __init__(self, detail: str | None = None, *, user_message: str | None = None):
        super().__init__(detail or self.user_message)
        if user_message:
            self.user_message = user_message


class ExamLoadError(ExamServiceError):
    """考试或题目加载失败 / 题目为空，不允许开始。"""
    user_message = "This exam could not be loaded. Please try again later."


class AuthMissingError(ExamServiceError):
    """提交时没有登录用户，拒绝写入。"""
    user_message = "Please sign in to submit your exam."


class AttemptWriteError(ExamServiceError):
    """作答记录（第一步）写入失败，什么都没落库，可重新提交。"""
    user_message = "Your exam could not be saved. Please submit again."


class SessionNotActiveError(ExamServiceError):
    user_message = "This exam session is no longer accepting answers."


class SessionStateError(ExamServiceError):
    user_message = "This action is not allowed in the current exam state."


class ReviewLoadError(ExamServiceError):
    user_message = "The review could not be loaded. Please try again later."


class HistoryLoadError(ExamServiceError):
    user_message = "Your exam history could not be loaded. Please try again later."
