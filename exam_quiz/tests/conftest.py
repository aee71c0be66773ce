import os
import sys

# Ensure project root is on sys.path for test imports
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

import pytest  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_settings_and_store(monkeypatch) -> None:
    from exam_quiz.utils.cache import reset_cache_store
    from exam_quiz.utils.settings import get_settings

    # Tests always run against the in-memory store.
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("REQUIRE_REDIS", raising=False)
    monkeypatch.setenv("LOG_TO_FILE", "0")
    get_settings.cache_clear()
    reset_cache_store()
    yield
    get_settings.cache_clear()
    reset_cache_store()
