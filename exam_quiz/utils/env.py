from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv


def load_project_dotenv() -> bool:
    """
    Load `.env` from the project root into `os.environ`.

    The cache store reads `REDIS_URL`/`CACHE_PREFIX` through `os.getenv`, and
    `pydantic-settings` does not populate `os.environ` on its own.
    Existing environment variables always win.
    """
    here = Path(__file__).resolve()
    project_root = here.parents[2]

    candidates = [
        project_root / ".env",
        project_root / "exam_quiz" / ".env",
    ]

    loaded = False
    for p in candidates:
        if p.exists():
            loaded = bool(load_dotenv(p, override=False)) or loaded
    return loaded
