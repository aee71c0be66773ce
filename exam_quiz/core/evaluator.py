from __future__ import annotations

import time
from typing import Iterable, Optional, Set

from exam_quiz.models.schemas import NormalizedQuestion, UserAnswer


def _letters(values: Iterable[str] | None) -> Set[str]:
    return {str(v).strip().upper() for v in (values or []) if str(v).strip()}


def is_answer_correct(
    user_selection: Iterable[str] | None, correct_answers: Iterable[str] | None
) -> bool:
    """Exact set match; order and duplicates in either argument do not matter."""
    return _letters(user_selection) == _letters(correct_answers)


def now_ms() -> int:
    return int(time.time() * 1000)


def grade_answer(
    question: NormalizedQuestion,
    selected_options: Iterable[str] | None,
    *,
    timestamp: Optional[int] = None,
) -> UserAnswer:
    selected = sorted(_letters(selected_options))
    return UserAnswer(
        question_id=question.id,
        selected_options=selected,
        is_correct=is_answer_correct(selected, question.correct_answers),
        timestamp=now_ms() if timestamp is None else int(timestamp),
    )
