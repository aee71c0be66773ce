from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    # 4xx - Client errors
    INVALID_REQUEST = "E4000"
    QUESTION_NOT_FOUND = "E4004"
    SESSION_NOT_FOUND = "E4040"
    INVALID_SESSION_STATE = "E4090"
    VALIDATION_ERROR = "E4220"

    # 5xx - Service errors
    SERVICE_ERROR = "E5000"


class ExamQuizError(Exception):
    """Base error for exam quiz."""


class QuestionFileError(ExamQuizError):
    """Question file missing, unreadable or not in a supported shape."""


class QuizSessionError(ExamQuizError):
    """Quiz session failure."""


class SessionNotFoundError(QuizSessionError):
    """No stored session for the given id."""


class InvalidSessionStateError(QuizSessionError):
    """Transition not allowed from the session's current view."""


class QuestionNotFoundError(QuizSessionError):
    """Question id is not part of the active run."""


def error_code_for_http_status(status_code: int) -> ErrorCode:
    if status_code == 404:
        return ErrorCode.SESSION_NOT_FOUND
    if status_code == 409:
        return ErrorCode.INVALID_SESSION_STATE
    if status_code == 422:
        return ErrorCode.VALIDATION_ERROR
    if 400 <= int(status_code) < 500:
        return ErrorCode.INVALID_REQUEST
    return ErrorCode.SERVICE_ERROR


def build_error_payload(
    *,
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
    session_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Canonical error shape for HTTP JSON responses.

    `error` is the primary message; `message` is kept as an alias.
    """
    payload: Dict[str, Any] = {
        "code": code.value,
        "error": str(message),
        "message": str(message),
    }
    if details is not None:
        payload["details"] = details
    if request_id:
        payload["request_id"] = str(request_id)
    if session_id:
        payload["session_id"] = str(session_id)
    return payload
