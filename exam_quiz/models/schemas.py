from enum import Enum
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

# Sentinel for an option whose letter could not be parsed from its text.
UNRESOLVED_KEY = "?"


# --- Basic Enums ---
class QuestionType(str, Enum):
    SINGLE = "SINGLE"
    MULTI = "MULTI"


class View(str, Enum):
    HOME = "HOME"
    QUIZ = "QUIZ"
    SUMMARY = "SUMMARY"
    LEADERBOARD = "LEADERBOARD"


# --- Raw input (as found in the question dataset) ---
class _RawModel(BaseModel):
    """Lenient input: camelCase or snake_case keys, unknown keys ignored."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )


class Vote(_RawModel):
    answer: str = ""
    count: int = 0
    is_most_voted: bool = Field(default=False, alias="isMostVoted")

    @field_validator("answer", mode="before")
    @classmethod
    def _none_answer(cls, v):
        return "" if v is None else v

    @field_validator("count", mode="before")
    @classmethod
    def _none_count(cls, v):
        return 0 if v is None else v

    @field_validator("is_most_voted", mode="before")
    @classmethod
    def _none_flag(cls, v):
        return False if v is None else v


class Comment(_RawModel):
    date: str = ""
    vote_count: int = Field(default=0, alias="voteCount")
    content: str = ""

    @field_validator("date", "content", mode="before")
    @classmethod
    def _none_text(cls, v):
        return "" if v is None else v

    @field_validator("vote_count", mode="before")
    @classmethod
    def _none_votes(cls, v):
        return 0 if v is None else v


class RawQuestion(_RawModel):
    topic: Optional[str] = None
    index: Optional[Union[int, str]] = None
    body: str = ""
    answer: str = ""
    answer_description: Optional[str] = Field(default=None, alias="answerDescription")
    options: List[str] = Field(default_factory=list)
    votes: Optional[List[Vote]] = None
    comments: Optional[List[Comment]] = None
    url: Optional[str] = None

    @field_validator("options", mode="before")
    @classmethod
    def _none_options(cls, v):
        if v is None:
            return []
        # A null entry keeps its slot so positional letters stay aligned.
        if isinstance(v, list):
            return ["" if o is None else o for o in v]
        return v

    @field_validator("body", "answer", mode="before")
    @classmethod
    def _none_text(cls, v):
        return "" if v is None else v


# --- Normalized output ---
class Option(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Single uppercase letter, or '?' before resolution")
    text: str = ""

    @property
    def is_resolved(self) -> bool:
        return self.key != UNRESOLVED_KEY


class NormalizedQuestion(BaseModel):
    """Canonical question. `type` is derived from `correct_answers` and cannot be set."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    topic: str = "General"
    index: str
    body: str = ""
    # Tuples: frozen=True alone would still allow in-place list edits.
    correct_answers: Tuple[str, ...] = ()
    options: Tuple[Option, ...] = ()
    explanation: str = ""
    warnings: Tuple[str, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def type(self) -> QuestionType:
        return QuestionType.MULTI if len(self.correct_answers) > 1 else QuestionType.SINGLE


# --- Quiz run records ---
class UserAnswer(BaseModel):
    question_id: str
    selected_options: List[str] = Field(default_factory=list)
    is_correct: bool
    timestamp: int = Field(..., description="Epoch milliseconds")


class QuizStats(BaseModel):
    total_questions: int = 0
    total_answered: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    accuracy: float = Field(default=0.0, description="Percent of answered, 0-100")
    start_time: int
    end_time: Optional[int] = None


class LeaderboardEntry(BaseModel):
    run_id: str
    date: str
    total_answered: int
    correct: int
    accuracy: int
