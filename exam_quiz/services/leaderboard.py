from __future__ import annotations

import logging
from typing import List, Optional

from exam_quiz.models.schemas import LeaderboardEntry
from exam_quiz.utils.cache import BaseCache, get_cache_store
from exam_quiz.utils.observability import log_event
from exam_quiz.utils.settings import get_settings

logger = logging.getLogger(__name__)


def _store(store: Optional[BaseCache]) -> BaseCache:
    return store if store is not None else get_cache_store()


def _load(store: BaseCache) -> List[LeaderboardEntry]:
    raw = store.get(get_settings().leaderboard_key) or []
    return [LeaderboardEntry.model_validate(r) for r in raw if isinstance(r, dict)]


def save_run(entry: LeaderboardEntry, *, store: Optional[BaseCache] = None) -> None:
    """Append one run; only the newest `leaderboard_max_entries` are kept."""
    settings = get_settings()
    s = _store(store)
    limit = max(1, int(settings.leaderboard_max_entries))
    with s.lock(f"{settings.leaderboard_key}:lock"):
        entries = _load(s)
        entries.append(entry)
        entries = entries[-limit:]
        s.set(settings.leaderboard_key, [e.model_dump(mode="json") for e in entries])
    log_event(
        logger,
        "leaderboard_run_saved",
        run_id=entry.run_id,
        accuracy=entry.accuracy,
        total_answered=entry.total_answered,
    )


def list_runs(
    limit: Optional[int] = None, *, store: Optional[BaseCache] = None
) -> List[LeaderboardEntry]:
    """Best runs first: accuracy, then correct count, then most recent."""
    entries = _load(_store(store))
    entries.sort(key=lambda e: e.date, reverse=True)
    entries.sort(key=lambda e: (e.accuracy, e.correct), reverse=True)
    if limit is not None:
        entries = entries[: max(0, int(limit))]
    return entries
