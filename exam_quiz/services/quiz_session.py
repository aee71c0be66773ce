"""
Quiz run state machine.

    HOME --start--> QUIZ --complete--> SUMMARY --retry--> QUIZ
    any --go_home--> HOME
    HOME | SUMMARY --open_leaderboard--> LEADERBOARD --close--> SUMMARY | HOME
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    ContextManager,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
)

from exam_quiz.core.evaluator import grade_answer, now_ms
from exam_quiz.core.stats import (
    build_leaderboard_entry,
    compute_stats,
    incorrect_question_ids,
)
from exam_quiz.models.schemas import (
    LeaderboardEntry,
    NormalizedQuestion,
    QuizStats,
    UserAnswer,
    View,
)
from exam_quiz.services import leaderboard
from exam_quiz.utils.cache import get_cache_store
from exam_quiz.utils.errors import (
    InvalidSessionStateError,
    QuestionNotFoundError,
    SessionNotFoundError,
)
from exam_quiz.utils.observability import log_event
from exam_quiz.utils.settings import get_settings

logger = logging.getLogger(__name__)


@dataclass
class QuizSessionState:
    session_id: str
    view: View = View.HOME
    questions: List[NormalizedQuestion] = field(default_factory=list)
    answers: List[UserAnswer] = field(default_factory=list)
    retry_ids: List[str] = field(default_factory=list)
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    last_entry: Optional[LeaderboardEntry] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "view": self.view.value,
            "questions": [q.model_dump(mode="json") for q in self.questions],
            "answers": [a.model_dump(mode="json") for a in self.answers],
            "retry_ids": list(self.retry_ids),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "last_entry": self.last_entry.model_dump(mode="json")
            if self.last_entry
            else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizSessionState":
        payload = data or {}
        entry = payload.get("last_entry")
        return cls(
            session_id=str(payload.get("session_id") or ""),
            view=View(payload.get("view") or View.HOME.value),
            questions=[
                NormalizedQuestion.model_validate(q)
                for q in payload.get("questions") or []
            ],
            answers=[UserAnswer.model_validate(a) for a in payload.get("answers") or []],
            retry_ids=[str(x) for x in payload.get("retry_ids") or []],
            start_time=payload.get("start_time"),
            end_time=payload.get("end_time"),
            last_entry=LeaderboardEntry.model_validate(entry) if entry else None,
        )


class QuizSession:
    """Transitions over a QuizSessionState. Persistence is the store's job."""

    def __init__(
        self,
        state: QuizSessionState,
        *,
        save_run: Callable[[LeaderboardEntry], None] = leaderboard.save_run,
    ):
        self.state = state
        self._save_run = save_run

    @property
    def session_id(self) -> str:
        return self.state.session_id

    @property
    def view(self) -> View:
        return self.state.view

    def _require(self, *views: View, action: str) -> None:
        if self.state.view not in views:
            allowed = "/".join(v.value for v in views)
            raise InvalidSessionStateError(
                f"cannot {action} from {self.state.view.value} (requires {allowed})"
            )

    def _reset_run(self) -> None:
        self.state.answers = []
        self.state.start_time = now_ms()
        self.state.end_time = None

    def start(self, questions: Sequence[NormalizedQuestion]) -> None:
        self.state.questions = list(questions)
        self.state.retry_ids = []
        self.state.last_entry = None
        self._reset_run()
        self.state.view = View.QUIZ
        log_event(
            logger,
            "quiz_started",
            session_id=self.session_id,
            questions=len(self.state.questions),
        )

    def active_questions(self) -> List[NormalizedQuestion]:
        if not self.state.retry_ids:
            return list(self.state.questions)
        wanted = set(self.state.retry_ids)
        return [q for q in self.state.questions if q.id in wanted]

    def submit_answer(
        self, question_id: str, selected_options: Iterable[str]
    ) -> UserAnswer:
        self._require(View.QUIZ, action="answer")
        question = next(
            (q for q in self.active_questions() if q.id == question_id), None
        )
        if question is None:
            raise QuestionNotFoundError(f"question {question_id} is not in this run")
        answer = grade_answer(question, selected_options)
        # Latest answer wins.
        self.state.answers = [
            a for a in self.state.answers if a.question_id != question_id
        ] + [answer]
        return answer

    def stats(self) -> QuizStats:
        return compute_stats(
            self.active_questions(),
            self.state.answers,
            start_time=self.state.start_time or now_ms(),
            end_time=self.state.end_time,
        )

    def incorrect_ids(self) -> List[str]:
        return incorrect_question_ids(self.state.answers)

    def complete(self) -> LeaderboardEntry:
        self._require(View.QUIZ, action="complete")
        self.state.end_time = now_ms()
        entry = build_leaderboard_entry(self.state.answers)
        self._save_run(entry)
        self.state.last_entry = entry
        self.state.view = View.SUMMARY
        log_event(
            logger,
            "quiz_completed",
            session_id=self.session_id,
            run_id=entry.run_id,
            answered=entry.total_answered,
            correct=entry.correct,
        )
        return entry

    def retry(self, question_ids: Optional[Iterable[str]] = None) -> None:
        self._require(View.SUMMARY, action="retry")
        known = {q.id for q in self.state.questions}
        ids = list(question_ids) if question_ids is not None else self.incorrect_ids()
        ids = [i for i in dict.fromkeys(str(x) for x in ids) if i in known]
        if not ids:
            raise InvalidSessionStateError("nothing to retry")
        self.state.retry_ids = ids
        self._reset_run()
        self.state.view = View.QUIZ
        log_event(
            logger, "quiz_retry", session_id=self.session_id, questions=len(ids)
        )

    def go_home(self) -> None:
        self.state.questions = []
        self.state.answers = []
        self.state.retry_ids = []
        self.state.start_time = None
        self.state.end_time = None
        self.state.last_entry = None
        self.state.view = View.HOME

    def open_leaderboard(self) -> None:
        self._require(View.HOME, View.SUMMARY, action="open leaderboard")
        self.state.view = View.LEADERBOARD

    def close_leaderboard(self) -> None:
        self._require(View.LEADERBOARD, action="close leaderboard")
        if self.state.questions and self.state.answers:
            self.state.view = View.SUMMARY
        else:
            self.state.view = View.HOME


class QuizSessionStore(ABC):
    @abstractmethod
    def save(self, state: QuizSessionState) -> None: ...

    @abstractmethod
    def load(self, session_id: str) -> Optional[QuizSessionState]: ...


class CacheQuizSessionStore(QuizSessionStore):
    def __init__(self, *, ttl_seconds: Optional[int] = None):
        self._ttl_seconds = ttl_seconds

    def _key(self, session_id: str) -> str:
        return f"quiz:session:{session_id}"

    def save(self, state: QuizSessionState) -> None:
        if not state.session_id:
            return
        ttl = self._ttl_seconds or get_settings().session_ttl_seconds
        get_cache_store().set(
            self._key(state.session_id), state.to_dict(), ttl_seconds=ttl
        )

    def load(self, session_id: str) -> Optional[QuizSessionState]:
        if not session_id:
            return None
        data = get_cache_store().get(self._key(session_id))
        if not isinstance(data, dict):
            return None
        return QuizSessionState.from_dict(data)


_DEFAULT_SESSION_STORE: Optional[QuizSessionStore] = None


def get_session_store() -> QuizSessionStore:
    global _DEFAULT_SESSION_STORE
    if _DEFAULT_SESSION_STORE is None:
        _DEFAULT_SESSION_STORE = CacheQuizSessionStore()
    return _DEFAULT_SESSION_STORE


def new_session(*, store: Optional[QuizSessionStore] = None) -> QuizSession:
    session = QuizSession(QuizSessionState(session_id=f"sess_{uuid.uuid4().hex[:12]}"))
    (store or get_session_store()).save(session.state)
    return session


def session_lock(session_id: str) -> ContextManager:
    """Serialize load-mutate-save cycles on one session."""
    return get_cache_store().lock(f"quiz:session-lock:{session_id}")


def load_session(
    session_id: str, *, store: Optional[QuizSessionStore] = None
) -> QuizSession:
    state = (store or get_session_store()).load(session_id)
    if state is None:
        raise SessionNotFoundError(f"session {session_id} not found")
    return QuizSession(state)


def save_session(
    session: QuizSession, *, store: Optional[QuizSessionStore] = None
) -> None:
    (store or get_session_store()).save(session.state)
