"""判分：逐题比对学生所选选项与正确答案标记，统计对 / 错 / 未答并计算百分制得分。

正确答案标记在历史数据里有两种写法：选项字母（a-d）或正确选项的原文。
判分与回顾页都只走 option_is_answer 这一条规则，保证两处结论一致。
"""
from dataclasses import dataclass
from typing import Iterable, Mapping

OPTION_KEYS = ("a", "b", "c", "d")

STATUS_CORRECT = "correct"
STATUS_WRONG = "wrong"
STATUS_SKIPPED = "skipped"


@dataclass(frozen=True)
class GradedAnswer:
    question_id: str
    selected_option: str | None
    is_correct: bool
    status: str


@dataclass(frozen=True)
class GradeResult:
    correct_count: int
    wrong_count: int
    skipped_count: int
    total_count: int
    percent_score: int
    items: tuple[GradedAnswer, ...] = ()

    @property
    def degenerate(self) -> bool:
        """题目数为 0：得分 0 没有意义，调用方应给出提示而不是直接展示 0%。"""
        return self.total_count == 0


def _marker_key(marker: str | None) -> str | None:
    """标记是选项字母时返回小写字母，否则返回 None。"""
    if marker is None:
        return None
    m = marker.strip().lower()
    return m if m in OPTION_KEYS else None


def option_is_answer(option_key: str, option_text: str | None, marker: str | None) -> bool:
    """某个选项是否为正确答案。标记为字母时比字母，否则比选项原文（去首尾空白）。"""
    if marker is None or not marker.strip():
        return False
    key = _marker_key(marker)
    if key is not None:
        return option_key == key
    if option_text is None:
        return False
    return option_text.strip() == marker.strip()


def is_selection_correct(
    options: Mapping[str, str] | None,
    marker: str | None,
    selected: str | None,
) -> bool:
    if not selected:
        return False
    return option_is_answer(selected, (options or {}).get(selected), marker)


def percent_score(correct: int, total: int) -> int:
    """round(100 * correct / total)，.5 向上取整；total 为 0 时返回 0。"""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def grade_answers(questions: Iterable, selections: Mapping[str, str | None]) -> GradeResult:
    """
    questions: 具有 id / options / correct_answer 属性的题目序列（QuestionSnapshot 或 ORM 对象均可）
    selections: {question_id: option_key}
    无部分得分、无倒扣，每题只有对 / 错 / 未答三种结果。
    """
    items: list[GradedAnswer] = []
    correct = wrong = skipped = 0
    for q in questions:
        selected = selections.get(q.id)
        if not selected:
            skipped += 1
            items.append(GradedAnswer(q.id, None, False, STATUS_SKIPPED))
            continue
        if is_selection_correct(q.options, q.correct_answer, selected):
            correct += 1
            items.append(GradedAnswer(q.id, selected, True, STATUS_CORRECT))
        else:
            wrong += 1
            items.append(GradedAnswer(q.id, selected, False, STATUS_WRONG))
    total = len(items)
    return GradeResult(
        correct_count=correct,
        wrong_count=wrong,
        skipped_count=skipped,
        total_count=total,
        percent_score=percent_score(correct, total),
        items=tuple(items),
    )
