import logging

from exam_quiz.utils.logging_setup import FILE_HANDLER_NAME, setup_file_logging
from exam_quiz.utils.settings import get_settings


def test_file_logging_follows_settings(monkeypatch, tmp_path):
    log_path = tmp_path / "logs" / "quiz.log"
    monkeypatch.setenv("LOG_FILE_PATH", str(log_path))
    monkeypatch.setenv("LOG_ROTATE_WHEN", "H")
    monkeypatch.setenv("LOG_BACKUP_COUNT", "3")
    monkeypatch.setenv("LOG_FILE_LOGGERS", '["exam_quiz.file_sink"]')
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    target = logging.getLogger("exam_quiz.file_sink")

    handler = setup_file_logging(get_settings())
    try:
        assert handler is not None
        assert handler.when == "H"
        assert handler.backupCount == 3
        assert [h.name for h in target.handlers] == [FILE_HANDLER_NAME]
        # Already attached: nothing new is added.
        assert setup_file_logging(get_settings()) is None
        assert len(target.handlers) == 1

        target.debug("run saved")
        handler.flush()
        assert "run saved" in log_path.read_text(encoding="utf-8")
    finally:
        target.handlers.clear()
        target.setLevel(logging.NOTSET)
        if handler is not None:
            handler.close()
