from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

from pydantic import ValidationError

from exam_quiz.models.schemas import RawQuestion
from exam_quiz.utils.errors import QuestionFileError
from exam_quiz.utils.observability import log_event

logger = logging.getLogger(__name__)


def parse_raw_questions(data: Any) -> List[RawQuestion]:
    """Accept either a list of records or `{"questions": [...]}`."""
    if isinstance(data, dict):
        data = data.get("questions")
    if not isinstance(data, list):
        raise QuestionFileError(
            "expected a list of questions or an object with a 'questions' list"
        )
    try:
        return [RawQuestion.model_validate(item) for item in data]
    except ValidationError as e:
        raise QuestionFileError(f"invalid question record: {e}") from e


def load_raw_questions(path: Path | str) -> List[RawQuestion]:
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise QuestionFileError(f"cannot read {p}: {e}") from e
    except ValueError as e:
        raise QuestionFileError(f"{p} is not valid JSON: {e}") from e
    questions = parse_raw_questions(data)
    log_event(logger, "questions_loaded", path=str(p), count=len(questions))
    return questions
