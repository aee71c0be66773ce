"""API router aggregation; `exam_quiz/main.py` mounts `router` under /api/v1."""

from __future__ import annotations

from fastapi import APIRouter

from exam_quiz.api import leaderboard as leaderboard_api
from exam_quiz.api import questions as questions_api
from exam_quiz.api import session as session_api

router = APIRouter()
router.include_router(questions_api.router)
router.include_router(session_api.router)
router.include_router(leaderboard_api.router)
