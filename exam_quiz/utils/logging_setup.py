from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from exam_quiz.utils.settings import Settings

FILE_HANDLER_NAME = "exam_quiz_file_handler"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def resolve_log_path(log_file_path: str) -> Path:
    """Relative paths are taken from the repository root."""
    path = Path(log_file_path)
    if path.is_absolute():
        return path
    return Path(__file__).resolve().parents[2] / path


def setup_file_logging(settings: Settings) -> TimedRotatingFileHandler | None:
    """
    Share one rotating file handler across `settings.log_file_loggers`.
    Re-running is a no-op for loggers that already carry it.
    """
    if not settings.log_file_path:
        return None
    level = logging.getLevelName(str(settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    path = resolve_log_path(settings.log_file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(path),
        when=settings.log_rotate_when,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
        delay=True,
    )
    handler.name = FILE_HANDLER_NAME
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    attached = False
    for name in settings.log_file_loggers:
        target = logging.getLogger(name)
        if any(h.name == FILE_HANDLER_NAME for h in target.handlers):
            continue
        target.addHandler(handler)
        # Root defaults to WARNING otherwise.
        if target.level == logging.NOTSET or target.level > level:
            target.setLevel(level)
        attached = True
    if not attached:
        handler.close()
        return None
    return handler


def setup_console_logging(*, level: int) -> None:
    """Plain stderr logging for scripts; no-op when root already has handlers."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    logging.basicConfig(level=level, format=LOG_FORMAT)


def silence_noisy_loggers() -> None:
    """Raise log levels for known chatty third-party libraries."""
    for name in ("httpx", "httpcore", "urllib3", "redis"):
        logging.getLogger(name).setLevel(logging.WARNING)
