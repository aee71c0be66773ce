from __future__ import annotations

import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from exam_quiz.core.normalizer import normalize_questions
from exam_quiz.models.schemas import (
    LeaderboardEntry,
    NormalizedQuestion,
    QuizStats,
    RawQuestion,
    UserAnswer,
    View,
)
from exam_quiz.services.quiz_session import (
    QuizSession,
    load_session,
    new_session,
    save_session,
    session_lock,
)
from exam_quiz.utils.errors import (
    ErrorCode,
    InvalidSessionStateError,
    QuestionNotFoundError,
    QuizSessionError,
    SessionNotFoundError,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sessions", tags=["sessions"])


class StartSessionRequest(BaseModel):
    questions: List[RawQuestion] = Field(..., min_length=1)


class AnswerRequest(BaseModel):
    question_id: str = Field(..., min_length=1)
    selected_options: List[str] = Field(default_factory=list)


class RetryRequest(BaseModel):
    question_ids: Optional[List[str]] = None


class SessionSnapshot(BaseModel):
    session_id: str
    view: View
    questions: List[NormalizedQuestion] = Field(default_factory=list)
    answers: List[UserAnswer] = Field(default_factory=list)
    retry_ids: List[str] = Field(default_factory=list)
    stats: Optional[QuizStats] = None
    last_entry: Optional[LeaderboardEntry] = None


class CompleteResponse(BaseModel):
    session_id: str
    entry: LeaderboardEntry
    stats: QuizStats
    incorrect_ids: List[str] = Field(default_factory=list)


def _raise_http(e: QuizSessionError) -> NoReturn:
    if isinstance(e, SessionNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    if isinstance(e, QuestionNotFoundError):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": ErrorCode.QUESTION_NOT_FOUND.value, "error": str(e)},
        ) from e
    if isinstance(e, InvalidSessionStateError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


def _load(session_id: str) -> QuizSession:
    try:
        return load_session(session_id)
    except QuizSessionError as e:
        _raise_http(e)


def _snapshot(session: QuizSession) -> SessionSnapshot:
    st = session.state
    return SessionSnapshot(
        session_id=st.session_id,
        view=st.view,
        questions=session.active_questions(),
        answers=list(st.answers),
        retry_ids=list(st.retry_ids),
        stats=session.stats() if st.start_time is not None else None,
        last_entry=st.last_entry,
    )


@router.post("", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
def start_session(payload: StartSessionRequest):
    session = new_session()
    session.start(normalize_questions(payload.questions))
    save_session(session)
    return _snapshot(session)


@router.get("/{session_id}", response_model=SessionSnapshot)
def get_session(session_id: str):
    return _snapshot(_load(session_id))


@router.post("/{session_id}/answers", response_model=UserAnswer)
def submit_answer(session_id: str, payload: AnswerRequest):
    with session_lock(session_id):
        session = _load(session_id)
        try:
            answer = session.submit_answer(
                payload.question_id, payload.selected_options
            )
        except QuizSessionError as e:
            _raise_http(e)
        save_session(session)
    return answer


@router.post("/{session_id}/complete", response_model=CompleteResponse)
def complete_session(session_id: str):
    with session_lock(session_id):
        session = _load(session_id)
        try:
            entry = session.complete()
        except QuizSessionError as e:
            _raise_http(e)
        save_session(session)
    return CompleteResponse(
        session_id=session_id,
        entry=entry,
        stats=session.stats(),
        incorrect_ids=session.incorrect_ids(),
    )


@router.post("/{session_id}/retry", response_model=SessionSnapshot)
def retry_session(session_id: str, payload: Optional[RetryRequest] = None):
    with session_lock(session_id):
        session = _load(session_id)
        try:
            session.retry(payload.question_ids if payload else None)
        except QuizSessionError as e:
            _raise_http(e)
        save_session(session)
    return _snapshot(session)


@router.post("/{session_id}/home", response_model=SessionSnapshot)
def go_home(session_id: str):
    with session_lock(session_id):
        session = _load(session_id)
        session.go_home()
        save_session(session)
    return _snapshot(session)


@router.post("/{session_id}/leaderboard/open", response_model=SessionSnapshot)
def open_leaderboard(session_id: str):
    with session_lock(session_id):
        session = _load(session_id)
        try:
            session.open_leaderboard()
        except QuizSessionError as e:
            _raise_http(e)
        save_session(session)
    return _snapshot(session)


@router.post("/{session_id}/leaderboard/close", response_model=SessionSnapshot)
def close_leaderboard(session_id: str):
    with session_lock(session_id):
        session = _load(session_id)
        try:
            session.close_leaderboard()
        except QuizSessionError as e:
            _raise_http(e)
        save_session(session)
    return _snapshot(session)
