"""Study session: today's shuffled words and a running tally."""

import logging
import random
from dataclasses import dataclass

from lexicard.application.scheduler import Scheduler
from lexicard.application.stats.metrics_calculator import MetricsCalculator, round_half_up
from lexicard.domain.clock import Clock, date_str, now_ms
from lexicard.domain.constants import (
    DEFAULT_DAILY_GOAL,
    SETTING_CURRENT_STREAK,
    SETTING_DAILY_GOAL,
    SETTING_LAST_SESSION,
)
from lexicard.domain.models import ReviewedWord, SessionEvent, Word
from lexicard.domain.ports import WordStore

logger = logging.getLogger(__name__)


@dataclass
class SessionStats:
    reviewed: int = 0
    correct: int = 0
    incorrect: int = 0
    start_time: int = 0

    @property
    def accuracy(self) -> int:
        if self.reviewed == 0:
            return 0
        return round_half_up(self.correct / self.reviewed * 100)


@dataclass
class MarkResult:
    word_result: ReviewedWord
    has_next: bool
    session_stats: SessionStats


class StudySession:
    """
    One pass over today's words.

    Each answer goes through the Scheduler; a summary statistic is written once
    the last word has been answered.
    """

    def __init__(
        self,
        store: WordStore,
        scheduler: Scheduler,
        calculator: MetricsCalculator | None = None,
        rng: random.Random | None = None,
        clock: Clock = now_ms,
    ):
        self._store = store
        self._scheduler = scheduler
        self._calc = calculator or MetricsCalculator()
        self._rng = rng or random.Random()
        self._clock = clock
        self.words: list[Word] = []
        self.index = 0
        self.stats = SessionStats(start_time=clock())

    @property
    def remaining(self) -> int:
        return max(0, len(self.words) - self.index)

    async def load_today_words(self) -> list[Word]:
        daily_goal = await self._store.get_setting(SETTING_DAILY_GOAL, DEFAULT_DAILY_GOAL)
        self.words = await self._scheduler.get_today_words(daily_goal)
        self.index = 0
        self.stats = SessionStats(start_time=self._clock())
        self._rng.shuffle(self.words)
        logger.debug(f"[session] loaded {len(self.words)} words (goal={daily_goal})")
        return self.words

    def current_word(self) -> Word | None:
        if self.index >= len(self.words):
            return None
        return self.words[self.index]

    async def mark_word(self, is_known: bool) -> MarkResult | None:
        word = self.current_word()
        if word is None:
            return None

        result = await self._scheduler.review_word(word.id, is_known)
        self.stats.reviewed += 1
        if is_known:
            self.stats.correct += 1
        else:
            self.stats.incorrect += 1
        self.index += 1

        if self.index >= len(self.words):
            await self.complete_session()

        return MarkResult(
            word_result=result,
            has_next=self.index < len(self.words),
            session_stats=self.stats,
        )

    async def complete_session(self) -> SessionEvent:
        now = self._clock()
        event = await self._store.append_statistic(
            SessionEvent(
                words_reviewed=self.stats.reviewed,
                correct_answers=self.stats.correct,
                incorrect_answers=self.stats.incorrect,
                duration=round_half_up((now - self.stats.start_time) / 1000),
                accuracy=self.stats.accuracy,
            )
        )

        today = date_str(now)
        if await self._store.get_setting(SETTING_LAST_SESSION) != today:
            await self._store.set_setting(SETTING_LAST_SESSION, today)
            dates = await self._store.get_statistic_dates()
            await self._store.set_setting(
                SETTING_CURRENT_STREAK, self._calc.compute_streak(dates, today)
            )

        logger.info(
            f"[session] complete: reviewed={self.stats.reviewed} "
            f"correct={self.stats.correct} accuracy={self.stats.accuracy}%"
        )
        return event

    def reset_session(self) -> None:
        self.index = 0
        self.stats = SessionStats(start_time=self._clock())
        self._rng.shuffle(self.words)
