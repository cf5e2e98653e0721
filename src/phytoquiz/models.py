from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import settings


# --- Question data ---
class ChoiceKey(str, Enum):
    A = "a"
    B = "b"
    C = "c"


class Choice(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: ChoiceKey
    text: str


class Question(BaseModel):
    """One multiple-choice question, immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    id: int
    question: str
    image: Optional[str] = None
    choices: List[Choice] = Field(min_length=2, max_length=3)
    answer: ChoiceKey
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def check_choices(self) -> "Question":
        keys = [c.key for c in self.choices]
        if len(set(keys)) != len(keys):
            raise ValueError(f"question {self.id}: duplicate choice keys")
        if self.answer not in keys:
            raise ValueError(
                f"question {self.id}: answer '{self.answer.value}' matches no choice"
            )
        return self

    def choice_for(self, key: Optional[ChoiceKey]) -> Optional[Choice]:
        for choice in self.choices:
            if choice.key == key:
                return choice
        return None


# --- Session configuration ---
class QuestionBank(str, Enum):
    NP = "np"
    PP = "pp"
    P2 = "p2"
    P3 = "p3"


BANK_INFO: Dict[QuestionBank, Dict[str, str]] = {
    QuestionBank.NP: {
        "title": "Phytolicence NP",
        "description": "Distribution/advice of plant protection products "
        "for non-professional use.",
    },
    QuestionBank.PP: {
        "title": "Phytolicence P1",
        "description": "Assistant for professional use.",
    },
    QuestionBank.P2: {
        "title": "Phytolicence P2",
        "description": "Professional use, agricultural or parks and gardens sector.",
    },
    QuestionBank.P3: {
        "title": "Phytolicence P3",
        "description": "Distribution/advice of products for professional use.",
    },
}


def default_bank() -> QuestionBank:
    """The configured primary bank, P1 when the setting is not a known bank."""
    try:
        return QuestionBank(settings.DEFAULT_BANK)
    except ValueError:
        return QuestionBank.PP


class QuizMode(str, Enum):
    RANDOM = "random"
    ALL = "all"


class SessionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    bank: QuestionBank = Field(default_factory=default_bank)
    mode: QuizMode = QuizMode.RANDOM

    @classmethod
    def from_params(
        cls, bank: Optional[str] = None, mode: Optional[str] = None
    ) -> "SessionConfig":
        """Builds a config from raw navigation parameters.

        Unrecognised banks fall back to the primary bank, and any mode
        other than ``all`` means ``random``.
        """
        try:
            parsed_bank = QuestionBank(bank)
        except ValueError:
            parsed_bank = default_bank()
        parsed_mode = QuizMode.ALL if mode == QuizMode.ALL.value else QuizMode.RANDOM
        return cls(bank=parsed_bank, mode=parsed_mode)


# --- Session state projections ---
class SessionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    ERRORED = "errored"


class AnswerReview(BaseModel):
    position: int
    question: Question
    selected: ChoiceKey
    is_correct: bool


class QuestionView(BaseModel):
    index: int
    total: int
    question: Question
    selected: Optional[ChoiceKey] = None
    is_correct: Optional[bool] = None
    show_correction: bool = False
    is_first: bool
    is_last: bool


class QuizResult(BaseModel):
    status: SessionStatus
    total: int
    answered: int
    score: int
    threshold: int
    passed: bool
    score_percentage: int
    reviews: List[AnswerReview]
    wrong_answers: List[AnswerReview]
