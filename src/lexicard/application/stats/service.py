"""
Progress Service — Application layer orchestrator for learning statistics.

Coordinates reading words and statistic events from the store and summarizing
them with the MetricsCalculator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lexicard.application.scheduler import Scheduler
    from lexicard.application.session import StudySession

from lexicard.domain.clock import Clock, date_str, now_ms
from lexicard.domain.constants import (
    DAILY_GOAL_STEP,
    DEFAULT_DAILY_GOAL,
    MASTERED_DIFFICULTY,
    MAX_DAILY_GOAL,
    MIN_DAILY_GOAL,
    SETTING_DAILY_GOAL,
)
from lexicard.domain.models import LearningStats, ReviewEvent, ScheduleDay, StatisticEvent
from lexicard.domain.ports import WordStore

from .metrics_calculator import MetricsCalculator

logger = logging.getLogger(__name__)


@dataclass
class StatisticsSummary:
    total_words: int
    mastered_words: int
    learning_words: int
    new_words: int
    today_reviewed: int
    today_correct: int
    streak: int


@dataclass
class Progress:
    total_words: int
    mastered_words: int
    learning_words: int
    new_words: int
    today_reviewed: int
    today_correct: int
    accuracy: int  # average retention, percent
    streak: int
    overdue_words: int


@dataclass
class SessionProgress:
    completed: int
    correct: int
    incorrect: int
    remaining: int


@dataclass
class DetailedStats:
    summary: StatisticsSummary
    schedule: list[ScheduleDay]
    learning_stats: LearningStats
    today_progress: SessionProgress | None = None


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str


@dataclass
class _TodayReviews:
    reviewed: int = 0
    correct: int = 0


class ProgressService:
    """
    Application service for progress reporting.

    Depends on the WordStore abstraction and the Scheduler's learning stats.
    """

    def __init__(
        self,
        store: WordStore,
        scheduler: Scheduler,
        calculator: MetricsCalculator | None = None,
        clock: Clock = now_ms,
    ):
        self._store = store
        self._scheduler = scheduler
        self._calc = calculator or MetricsCalculator()
        self._clock = clock

    async def get_streak(self) -> int:
        dates = await self._store.get_statistic_dates()
        return self._calc.compute_streak(dates, date_str(self._clock()))

    async def get_today_statistics(self) -> list[StatisticEvent]:
        return await self._store.get_statistics_by_date(date_str(self._clock()))

    async def _today_reviews(self) -> _TodayReviews:
        events = await self.get_today_statistics()
        reviews = [e for e in events if isinstance(e, ReviewEvent)]
        return _TodayReviews(
            reviewed=len(reviews),
            correct=sum(1 for e in reviews if e.correct),
        )

    async def get_statistics_summary(self) -> StatisticsSummary:
        words = await self._store.get_all()
        today = await self._today_reviews()
        return StatisticsSummary(
            total_words=len(words),
            mastered_words=sum(1 for w in words if w.difficulty >= MASTERED_DIFFICULTY),
            learning_words=sum(
                1 for w in words if w.review_count > 0 and w.difficulty < MASTERED_DIFFICULTY
            ),
            new_words=sum(1 for w in words if w.review_count == 0),
            today_reviewed=today.reviewed,
            today_correct=today.correct,
            streak=await self.get_streak(),
        )

    async def get_progress(self) -> Progress:
        stats = await self._scheduler.get_learning_stats()
        today = await self._today_reviews()
        return Progress(
            total_words=stats.total_words,
            mastered_words=stats.mastered,
            learning_words=stats.learning,
            new_words=stats.new_words,
            today_reviewed=today.reviewed,
            today_correct=today.correct,
            accuracy=stats.average_retention,
            streak=await self.get_streak(),
            overdue_words=stats.overdue_words,
        )

    async def get_detailed_stats(self, session: StudySession | None = None) -> DetailedStats:
        today_progress = None
        if session is not None:
            today_progress = SessionProgress(
                completed=session.stats.reviewed,
                correct=session.stats.correct,
                incorrect=session.stats.incorrect,
                remaining=session.remaining,
            )
        return DetailedStats(
            summary=await self.get_statistics_summary(),
            schedule=await self._scheduler.get_upcoming_schedule(7),
            learning_stats=await self._scheduler.get_learning_stats(),
            today_progress=today_progress,
        )

    async def get_suggested_daily_goal(self) -> int:
        """
        Nudge the daily goal by performance.

        Strong accuracy with the goal met raises it; weak accuracy or a goal
        missed by more than half lowers it.
        """
        progress = await self.get_progress()
        goal = await self._store.get_setting(SETTING_DAILY_GOAL, DEFAULT_DAILY_GOAL)

        if progress.accuracy > 80 and progress.today_reviewed >= goal:
            return min(goal + DAILY_GOAL_STEP, MAX_DAILY_GOAL)
        if progress.accuracy < 60 or progress.today_reviewed < goal * 0.5:
            return max(goal - DAILY_GOAL_STEP, MIN_DAILY_GOAL)
        return goal

    async def check_achievements(self) -> list[Achievement]:
        progress = await self.get_progress()
        achievements = []

        if progress.total_words >= 10:
            achievements.append(Achievement("beginner", "Beginner", "Added 10 words"))
        if progress.streak >= 7:
            achievements.append(Achievement("week_streak", "One Week", "Studied 7 days in a row"))
        if progress.mastered_words >= 20:
            achievements.append(Achievement("master_20", "Word Expert", "Mastered 20 words"))
        if progress.accuracy >= 90:
            achievements.append(
                Achievement("accuracy_90", "Memory Master", "Reached 90% accuracy")
            )

        return achievements
