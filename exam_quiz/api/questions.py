from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from exam_quiz.core.normalizer import normalize_questions
from exam_quiz.models.schemas import NormalizedQuestion, RawQuestion
from exam_quiz.utils.observability import log_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/questions", tags=["questions"])


class NormalizeRequest(BaseModel):
    questions: List[RawQuestion] = Field(default_factory=list)
    id_prefix: Optional[str] = Field(default=None, max_length=32)


class NormalizeResponse(BaseModel):
    questions: List[NormalizedQuestion] = Field(default_factory=list)
    warnings: int = 0


@router.post("/normalize", response_model=NormalizeResponse)
def normalize(payload: NormalizeRequest, request: Request):
    questions = normalize_questions(payload.questions, id_prefix=payload.id_prefix)
    warnings = sum(len(q.warnings) for q in questions)
    log_event(
        logger,
        "normalize_request",
        request_id=getattr(getattr(request, "state", None), "request_id", None),
        count=len(questions),
        warnings=warnings,
    )
    return NormalizeResponse(questions=questions, warnings=warnings)
