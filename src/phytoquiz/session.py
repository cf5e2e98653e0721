import asyncio
import logging
import math
import random
from fractions import Fraction
from typing import List, Optional, Sequence, Union

from .config import settings
from .models import (
    AnswerReview,
    ChoiceKey,
    Question,
    QuestionView,
    QuizMode,
    QuizResult,
    SessionConfig,
    SessionStatus,
)
from .questions import QuestionProvider, QuestionsUnavailable

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Cannot load questions."


# --- Pool selection & scoring rules ---
def draw_pool(
    bank: Sequence[Question],
    mode: QuizMode,
    rng: Optional[random.Random] = None,
    size: Optional[int] = None,
) -> List[Question]:
    """Selects the questions for one attempt.

    ``all`` keeps the whole bank in its original order. ``random`` runs a
    Fisher-Yates shuffle over a copy of the bank and keeps the first
    ``size`` questions (``RANDOM_POOL_SIZE`` by default).
    """
    pool = list(bank)
    if mode == QuizMode.ALL:
        return pool

    rng = rng or random
    for i in range(len(pool) - 1, 0, -1):
        j = rng.randint(0, i)
        pool[i], pool[j] = pool[j], pool[i]

    count = settings.RANDOM_POOL_SIZE if size is None else size
    return pool[: min(count, len(pool))]


def pass_threshold(pool_size: int, ratio: Optional[float] = None) -> int:
    """Minimum score to pass: ceil(pool_size * ratio)."""
    ratio = settings.PASS_RATIO if ratio is None else ratio
    # exact arithmetic so 30 * 0.7 is 21, not 21.000000000000004
    return math.ceil(pool_size * Fraction(str(ratio)))


def format_answer_label(
    question: Question, key: Union[ChoiceKey, str, None]
) -> str:
    """Renders an answer as ``"B – choice text"``.

    Returns an empty string for no key and the bare uppercased key when it
    matches none of the question's choices.
    """
    if not key:
        return ""
    key_value = key.value if isinstance(key, ChoiceKey) else str(key)
    label = key_value.upper()
    try:
        choice = question.choice_for(ChoiceKey(key_value))
    except ValueError:
        choice = None
    if choice is None:
        return label
    return f"{label} – {choice.text}"


# --- Session state machine ---
class QuizSession:
    """All mutable state of one quiz attempt.

    ``answers`` is the only record of user input; ``score`` and ``reviews``
    are rebuilt from it after every change, and the per-question display
    state is projected from ``(question_pool[i], answers[i])`` by ``view()``.
    """

    format_answer_label = staticmethod(format_answer_label)

    def __init__(
        self, provider: QuestionProvider, rng: Optional[random.Random] = None
    ):
        self.provider = provider
        self.rng = rng or random.Random()
        self.config: Optional[SessionConfig] = None
        self.generation = 0
        self.error: Optional[str] = None
        self._phase = SessionStatus.IDLE
        self._bank: List[Question] = []

        self.question_pool: List[Question] = []
        self.current_index = 0
        self.answers: List[Optional[ChoiceKey]] = []
        self.score = 0
        self.reviews: List[AnswerReview] = []

    # --- Loading ---
    def begin(self, config: SessionConfig) -> int:
        """Enters Loading for ``config`` and returns the new fetch generation."""
        self.generation += 1
        self.config = config
        self.error = None
        self._phase = SessionStatus.LOADING
        self._bank = []
        self._reset([])
        logger.info(
            f"Loading bank '{config.bank.value}' "
            f"[mode: {config.mode.value}, generation: {self.generation}]"
        )
        return self.generation

    def resolve(self, generation: int, questions: Sequence[Question]) -> bool:
        if self.config is None or generation != self.generation:
            logger.debug(
                f"Discarding questions from stale generation {generation} "
                f"(current: {self.generation})"
            )
            return False
        self._bank = list(questions)
        self._phase = SessionStatus.READY
        self._redraw()
        return True

    def reject(self, generation: int, error: Exception) -> bool:
        if self.config is None or generation != self.generation:
            logger.debug(f"Discarding failure from stale generation {generation}")
            return False
        logger.warning(f"Question fetch failed: {error}")
        self._phase = SessionStatus.ERRORED
        self.error = LOAD_ERROR_MESSAGE
        self._bank = []
        self._reset([])
        return True

    def cancel(self):
        """Discards any in-flight fetch, e.g. when the user navigates away."""
        self.generation += 1
        if self._phase == SessionStatus.LOADING:
            self._phase = SessionStatus.IDLE

    def start(self, config: SessionConfig):
        generation = self.begin(config)
        try:
            questions = self.provider.fetch(config.bank)
        except QuestionsUnavailable as exc:
            self.reject(generation, exc)
            return
        self.resolve(generation, questions)

    async def load(self, config: SessionConfig) -> bool:
        """Like ``start`` but fetches in a worker thread.

        Returns False when a newer load or a cancel superseded this one.
        """
        generation = self.begin(config)
        try:
            questions = await asyncio.to_thread(self.provider.fetch, config.bank)
        except QuestionsUnavailable as exc:
            return self.reject(generation, exc)
        return self.resolve(generation, questions)

    def restart(self, same_session: bool = True):
        """Starts the attempt over under the current config.

        Reuses the cached bank when there is one, otherwise fetches again.
        """
        if self.config is None:
            return
        if not (same_session and self._restart_from_cache()):
            self.start(self.config)

    async def reload(self, same_session: bool = True):
        """Async ``restart``: a refetch goes through ``load``."""
        if self.config is None:
            return
        if not (same_session and self._restart_from_cache()):
            await self.load(self.config)

    def _restart_from_cache(self) -> bool:
        if not self._bank:
            return False
        self.generation += 1
        self.error = None
        self._phase = SessionStatus.READY
        self._redraw()
        logger.info(f"Restarted bank '{self.config.bank.value}' from cache")
        return True

    def _redraw(self):
        self._reset(draw_pool(self._bank, self.config.mode, self.rng))

    def _reset(self, pool: List[Question]):
        self.question_pool = pool
        self.answers = [None] * len(pool)
        self.current_index = 0
        self.score = 0
        self.reviews = []

    # --- State ---
    @property
    def status(self) -> SessionStatus:
        if self._phase != SessionStatus.READY:
            return self._phase
        if self.current_index >= len(self.question_pool):
            return SessionStatus.FINISHED
        if self.current_index > 0 or any(a is not None for a in self.answers):
            return SessionStatus.IN_PROGRESS
        return SessionStatus.READY

    def current_question(self) -> Optional[Question]:
        if self._phase != SessionStatus.READY:
            return None
        if self.current_index < len(self.question_pool):
            return self.question_pool[self.current_index]
        return None

    def view(self) -> Optional[QuestionView]:
        question = self.current_question()
        if question is None:
            return None
        selected = self.answers[self.current_index]
        total = len(self.question_pool)
        return QuestionView(
            index=self.current_index,
            total=total,
            question=question,
            selected=selected,
            is_correct=None if selected is None else selected == question.answer,
            show_correction=selected is not None,
            is_first=self.current_index == 0,
            is_last=self.current_index == total - 1,
        )

    # --- User actions ---
    def record_answer(self, key: Union[ChoiceKey, str]) -> Optional[QuestionView]:
        """Stores ``key`` for the current question, replacing any earlier answer."""
        if self.current_question() is None:
            logger.debug("record_answer ignored: no current question")
            return None
        try:
            key = ChoiceKey(key)
        except ValueError:
            logger.debug(f"record_answer ignored: unknown choice key {key!r}")
            return self.view()

        self.answers[self.current_index] = key
        self._rebuild()
        return self.view()

    def advance(self) -> bool:
        if self.current_question() is None:
            return False
        if self.answers[self.current_index] is None:
            logger.debug(f"advance ignored: question {self.current_index} unanswered")
            return False
        self.current_index += 1
        if self.current_index == len(self.question_pool):
            logger.info(f"Session finished with score {self.score}/{self.current_index}")
        return True

    def retreat(self) -> bool:
        if self._phase != SessionStatus.READY or self.current_index == 0:
            return False
        self.current_index -= 1
        return True

    def _rebuild(self):
        self.reviews = [
            AnswerReview(
                position=i,
                question=question,
                selected=key,
                is_correct=key == question.answer,
            )
            for i, (question, key) in enumerate(zip(self.question_pool, self.answers))
            if key is not None
        ]
        self.score = sum(1 for r in self.reviews if r.is_correct)

    # --- Results ---
    @property
    def threshold(self) -> int:
        return pass_threshold(len(self.question_pool))

    def passed(self) -> bool:
        if not self.question_pool:
            return False
        return self.score >= self.threshold

    def wrong_answers(self) -> List[AnswerReview]:
        return [r for r in self.reviews if not r.is_correct]

    def result(self) -> QuizResult:
        total = len(self.question_pool)
        return QuizResult(
            status=self.status,
            total=total,
            answered=len(self.reviews),
            score=self.score,
            threshold=self.threshold,
            passed=self.passed(),
            score_percentage=round(self.score / total * 100) if total else 0,
            reviews=self.reviews,
            wrong_answers=self.wrong_answers(),
        )
