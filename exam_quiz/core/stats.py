from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from exam_quiz.models.schemas import (
    LeaderboardEntry,
    NormalizedQuestion,
    QuizStats,
    UserAnswer,
)


def compute_stats(
    questions: Sequence[NormalizedQuestion],
    answers: Sequence[UserAnswer],
    *,
    start_time: int,
    end_time: Optional[int] = None,
) -> QuizStats:
    answered = len(answers)
    correct = sum(1 for a in answers if a.is_correct)
    return QuizStats(
        total_questions=len(questions),
        total_answered=answered,
        correct_count=correct,
        incorrect_count=answered - correct,
        accuracy=(correct / answered * 100.0) if answered else 0.0,
        start_time=int(start_time),
        end_time=end_time,
    )


def incorrect_question_ids(answers: Sequence[UserAnswer]) -> List[str]:
    return [a.question_id for a in answers if not a.is_correct]


def new_run_id() -> str:
    return f"run_{uuid.uuid4().hex[:12]}"


def build_leaderboard_entry(
    answers: Sequence[UserAnswer],
    *,
    run_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LeaderboardEntry:
    total = len(answers)
    correct = sum(1 for a in answers if a.is_correct)
    when = now or datetime.now(timezone.utc)
    return LeaderboardEntry(
        run_id=run_id or new_run_id(),
        date=when.isoformat(),
        total_answered=total,
        correct=correct,
        # Half-up, so 12.5 -> 13.
        accuracy=math.floor(correct * 100 / total + 0.5) if total else 0,
    )
