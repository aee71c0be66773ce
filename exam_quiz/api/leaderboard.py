from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from exam_quiz.models.schemas import LeaderboardEntry
from exam_quiz.services.leaderboard import list_runs

router = APIRouter(tags=["leaderboard"])


class LeaderboardResponse(BaseModel):
    items: List[LeaderboardEntry] = Field(default_factory=list)


@router.get("/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(limit: int = Query(default=20, ge=1, le=100)):
    return LeaderboardResponse(items=list_runs(limit))
