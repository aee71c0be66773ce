import threading
import time

from exam_quiz.models.schemas import LeaderboardEntry
from exam_quiz.services.leaderboard import list_runs, save_run
from exam_quiz.utils.cache import InMemoryCache


def _e(run_id: str, accuracy: int, correct: int, date: str) -> LeaderboardEntry:
    return LeaderboardEntry(
        run_id=run_id, date=date, total_answered=10, correct=correct, accuracy=accuracy
    )


def test_list_runs_orders_by_accuracy_then_correct_then_date():
    store = InMemoryCache()
    save_run(_e("old", 80, 8, "2024-01-01T00:00:00+00:00"), store=store)
    save_run(_e("best", 90, 9, "2024-01-02T00:00:00+00:00"), store=store)
    save_run(_e("new", 80, 8, "2024-01-03T00:00:00+00:00"), store=store)
    save_run(_e("more", 80, 16, "2023-01-01T00:00:00+00:00"), store=store)
    assert [e.run_id for e in list_runs(store=store)] == ["best", "more", "new", "old"]
    assert [e.run_id for e in list_runs(2, store=store)] == ["best", "more"]


def test_save_run_keeps_newest_entries(monkeypatch):
    monkeypatch.setenv("LEADERBOARD_MAX_ENTRIES", "2")
    store = InMemoryCache()
    for i in range(3):
        save_run(_e(f"r{i}", i, i, f"2024-01-0{i + 1}T00:00:00+00:00"), store=store)
    assert {e.run_id for e in list_runs(store=store)} == {"r1", "r2"}


def test_default_store_is_shared_cache():
    save_run(_e("r", 50, 5, "2024-01-01T00:00:00+00:00"))
    assert [e.run_id for e in list_runs()] == ["r"]


class _SlowCache(InMemoryCache):
    def get(self, key):
        value = super().get(key)
        time.sleep(0.01)
        return value


def test_concurrent_saves_keep_every_run():
    store = _SlowCache()
    barrier = threading.Barrier(8)

    def save(i):
        barrier.wait()
        save_run(_e(f"r{i}", i, i, f"2024-01-0{i + 1}T00:00:00+00:00"), store=store)

    threads = [threading.Thread(target=save, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert {e.run_id for e in list_runs(store=store)} == {f"r{i}" for i in range(8)}

