from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import os


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(default="dev", validation_alias="APP_ENV")

    # Normalization pipeline
    default_topic: str = Field(default="General", validation_alias="DEFAULT_TOPIC")
    top_comments_limit: int = Field(default=3, validation_alias="TOP_COMMENTS_LIMIT")
    question_id_prefix: str = Field(default="q", validation_alias="QUESTION_ID_PREFIX")
    # 1 keeps normalization on the calling thread.
    normalize_max_workers: int = Field(default=1, validation_alias="NORMALIZE_MAX_WORKERS")

    # Quiz sessions / leaderboard (stored via utils.cache)
    session_ttl_seconds: int = Field(default=24 * 3600, validation_alias="SESSION_TTL_SECONDS")
    leaderboard_max_entries: int = Field(default=100, validation_alias="LEADERBOARD_MAX_ENTRIES")
    leaderboard_key: str = Field(default="leaderboard:runs", validation_alias="LEADERBOARD_KEY")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    allow_origins: list[str] = Field(default=["*"], validation_alias="ALLOW_ORIGINS")
    log_to_file: bool = Field(default=True, validation_alias="LOG_TO_FILE")
    log_file_path: str = Field(
        default=os.path.join("logs", "exam_quiz.log"),
        validation_alias="LOG_FILE_PATH",
    )
    log_rotate_when: str = Field(default="midnight", validation_alias="LOG_ROTATE_WHEN")
    log_backup_count: int = Field(default=14, validation_alias="LOG_BACKUP_COUNT")
    # "" is the root logger; uvicorn's own loggers do not propagate to it.
    log_file_loggers: list[str] = Field(
        default=["", "uvicorn", "uvicorn.access"],
        validation_alias="LOG_FILE_LOGGERS",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
