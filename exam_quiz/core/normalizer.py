from __future__ import annotations

import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, List, Mapping, Optional, Union

from exam_quiz.core.answer_key import parse_correct_answers
from exam_quiz.core.explanation import build_explanation
from exam_quiz.core.option_parser import parse_options, resolve_option_keys
from exam_quiz.core.text_sanitizer import sanitize
from exam_quiz.models.schemas import NormalizedQuestion, RawQuestion
from exam_quiz.utils.observability import log_event, trace_span
from exam_quiz.utils.settings import get_settings

logger = logging.getLogger(__name__)

RawInput = Union[RawQuestion, Mapping[str, Any]]


def _coerce_raw(raw: RawInput) -> RawQuestion:
    if isinstance(raw, RawQuestion):
        return raw
    return RawQuestion.model_validate(raw)


def normalize_question(
    raw: RawInput,
    *,
    idx: int,
    question_id: str,
    default_topic: str = "General",
    top_comments: int = 3,
) -> NormalizedQuestion:
    """Normalize one record found at 0-based `idx` of its batch."""
    rq = _coerce_raw(raw)

    options, collisions = resolve_option_keys(parse_options(rq.options))
    for c in collisions:
        log_event(
            logger,
            "option_key_collision",
            level="warning",
            question_id=question_id,
            position=c.position,
            parsed_key=c.parsed_key,
            assigned_key=c.assigned_key,
            kind=c.kind,
        )

    return NormalizedQuestion(
        id=question_id,
        topic=rq.topic or default_topic,
        index=str(rq.index or idx + 1),
        body=sanitize(rq.body),
        correct_answers=tuple(parse_correct_answers(rq.answer)),
        options=tuple(options),
        explanation=build_explanation(
            rq.answer_description,
            rq.comments,
            rq.votes,
            top_comments=top_comments,
        ),
        warnings=tuple(c.message for c in collisions),
    )


def make_question_ids(count: int, *, prefix: str = "q") -> List[str]:
    """
    IDs unique within one batch: `<prefix>-<batch token>-<n>`, n from 1.
    The token keeps separate batches apart without relying on the clock.
    """
    batch = uuid.uuid4().hex[:8]
    return [f"{prefix}-{batch}-{n}" for n in range(1, count + 1)]


@trace_span("normalize_questions")
def normalize_questions(
    raw: Iterable[RawInput],
    *,
    max_workers: Optional[int] = None,
    id_prefix: Optional[str] = None,
) -> List[NormalizedQuestion]:
    """
    Raw records -> NormalizedQuestion list, same length and order as the input.
    Missing optional fields degrade to defaults; nothing here raises for them.
    """
    settings = get_settings()
    records = list(raw or [])
    workers = max_workers if max_workers is not None else settings.normalize_max_workers
    ids = make_question_ids(len(records), prefix=id_prefix or settings.question_id_prefix)
    started = time.monotonic()

    def _one(idx: int) -> NormalizedQuestion:
        return normalize_question(
            records[idx],
            idx=idx,
            question_id=ids[idx],
            default_topic=settings.default_topic,
            top_comments=settings.top_comments_limit,
        )

    if workers and workers > 1 and len(records) > 1:
        with ThreadPoolExecutor(max_workers=int(workers)) as pool:
            # map() yields in submission order.
            out = list(pool.map(_one, range(len(records))))
    else:
        out = [_one(i) for i in range(len(records))]

    log_event(
        logger,
        "normalize_batch",
        count=len(out),
        multi=sum(1 for q in out if len(q.correct_answers) > 1),
        warnings=sum(len(q.warnings) for q in out),
        workers=int(workers or 1),
        elapsed_ms=int((time.monotonic() - started) * 1000),
    )
    return out
