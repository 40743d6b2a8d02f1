"""
Spaced-repetition scheduler.

Turns review outcomes into new difficulty/streak/interval values and picks the
words for a study session:
1. Choose an interval table by pace profile
2. Step through the table by review count (regressing on failures)
3. Scale the interval by a per-difficulty factor
"""

import logging

from lexicard.application.stats.metrics_calculator import MetricsCalculator, round_half_up
from lexicard.domain.clock import Clock, date_str, now_ms
from lexicard.domain.constants import (
    DEFAULT_DAILY_GOAL,
    DEFAULT_PACE,
    DEFAULT_SCHEDULE_DAYS,
    DIFFICULTY_FACTORS,
    FAILURE_STEP_BACK,
    INTERVAL_TABLES,
    MAX_DIFFICULTY,
    MAX_INCORRECT_DAYS,
    MIN_FAILED_DIFFICULTY,
    MS_PER_DAY,
    RESTART_AFTER_FAILURES,
    SETTING_DAILY_GOAL,
    SETTING_PACE,
)
from lexicard.domain.errors import NotFoundError
from lexicard.domain.models import (
    LearningStats,
    MasteryPrediction,
    ReviewedWord,
    ReviewEvent,
    ReviewResult,
    ScheduleAdvice,
    ScheduleDay,
    Word,
)
from lexicard.domain.ports import WordStore

logger = logging.getLogger(__name__)


def calculate_next_review(
    word: Word, is_correct: bool, intervals: tuple[int, ...], now: int
) -> ReviewResult:
    """
    Compute the scheduling outcome of one review. Pure; the word is not modified.

    Args:
        word: Word state before the review.
        is_correct: Whether the user knew the word.
        intervals: Ascending interval table in days.
        now: Review time in epoch millis.
    """
    difficulty = word.difficulty
    streak = word.streak
    incorrect_count = word.incorrect_count

    if is_correct:
        difficulty = min(MAX_DIFFICULTY, difficulty + 1)
        streak += 1
    else:
        difficulty = max(MIN_FAILED_DIFFICULTY, difficulty - 1)
        streak = 0
        incorrect_count += 1

    if is_correct:
        interval_index = min(word.review_count, len(intervals) - 1)
    elif incorrect_count > RESTART_AFTER_FAILURES:
        # Chronically failed words start over.
        interval_index = 0
    else:
        interval_index = max(0, word.review_count - FAILURE_STEP_BACK)

    factor = DIFFICULTY_FACTORS.get(difficulty, 1.0)
    days = round_half_up(intervals[interval_index] * factor)

    if not is_correct:
        days = max(1, min(days, MAX_INCORRECT_DAYS))
    days = max(1, days)

    return ReviewResult(
        next_review_date=now + days * MS_PER_DAY,
        difficulty=difficulty,
        streak=streak,
        interval_index=interval_index,
        days_until_review=days,
    )


def _priority_key(word: Word, now: int) -> tuple[int, int, int]:
    overdue = now - word.next_review_date
    if overdue > 0:
        return (0, -overdue, word.difficulty)
    return (1, 0, word.difficulty)


def prioritize(words: list[Word], now: int) -> list[Word]:
    """
    Overdue words first, most overdue leading; the rest harder (lower difficulty) first.

    The key is a total order, so the result does not depend on input order.
    """
    return sorted(words, key=lambda w: _priority_key(w, now))


class Scheduler:
    """
    Application service owning all scheduling state changes.

    ``review_word`` is the only code path that mutates a word's difficulty,
    streak or next review date.
    """

    def __init__(
        self,
        store: WordStore,
        calculator: MetricsCalculator | None = None,
        clock: Clock = now_ms,
    ):
        self._store = store
        self._calc = calculator or MetricsCalculator()
        self._clock = clock

    async def get_interval_table(self) -> tuple[int, ...]:
        pace = await self._store.get_setting(SETTING_PACE, DEFAULT_PACE)
        return INTERVAL_TABLES.get(pace, INTERVAL_TABLES[DEFAULT_PACE])

    async def calculate_next_review(self, word: Word, is_correct: bool) -> ReviewResult:
        intervals = await self.get_interval_table()
        return calculate_next_review(word, is_correct, intervals, self._clock())

    async def review_word(self, word_id: int, is_correct: bool) -> ReviewedWord:
        word = await self._store.get(word_id)
        if word is None:
            raise NotFoundError(f"Word not found: {word_id}")

        now = self._clock()
        intervals = await self.get_interval_table()
        result = calculate_next_review(word, is_correct, intervals, now)

        updated = await self._store.update(
            word_id,
            {
                "last_reviewed_at": now,
                "review_count": word.review_count + 1,
                "correct_count": word.correct_count + (1 if is_correct else 0),
                "incorrect_count": word.incorrect_count + (0 if is_correct else 1),
                "difficulty": result.difficulty,
                "streak": result.streak,
                "next_review_date": result.next_review_date,
            },
        )
        await self._store.append_statistic(
            ReviewEvent(
                word_id=word_id,
                correct=is_correct,
                difficulty=result.difficulty,
                streak=result.streak,
                interval_days=result.days_until_review,
            )
        )
        logger.debug(
            f"[review] id={word_id} correct={is_correct} difficulty={result.difficulty} "
            f"index={result.interval_index} days={result.days_until_review}"
        )
        return ReviewedWord(
            word=updated,
            days_until_review=result.days_until_review,
            interval_index=result.interval_index,
        )

    async def get_today_words(self, limit: int = DEFAULT_DAILY_GOAL) -> list[Word]:
        """
        Pick up to ``limit`` words for today's session.

        Due reviews always come first; never-reviewed words only top up the quota.
        """
        if limit <= 0:
            return []

        words = await self._store.get_due_for_review(limit)
        if len(words) < limit:
            fresh = await self._store.get_never_reviewed(
                limit - len(words), exclude_ids=[w.id for w in words]
            )
            words.extend(fresh)

        return prioritize(words, self._clock())[:limit]

    def calculate_retention(self, word: Word) -> int:
        return self._calc.calculate_retention(word)

    def predict_mastery(self, word: Word) -> MasteryPrediction:
        return self._calc.predict_mastery(word, self._clock())

    async def get_learning_stats(self) -> LearningStats:
        words = await self._store.get_all()
        return self._calc.summarize(words, self._clock())

    async def get_upcoming_schedule(self, days: int = DEFAULT_SCHEDULE_DAYS) -> list[ScheduleDay]:
        """Bucket words by review date for the next ``days`` UTC calendar days."""
        now = self._clock()
        schedule: dict[str, ScheduleDay] = {}
        for i in range(days):
            day = date_str(now + i * MS_PER_DAY)
            schedule.setdefault(day, ScheduleDay(date=day))

        for word in await self._store.get_all():
            days_until = (word.next_review_date - now) // MS_PER_DAY
            if 0 <= days_until < days:
                bucket = schedule.get(date_str(word.next_review_date))
                if bucket is not None:
                    bucket.words.append(word)

        return list(schedule.values())

    async def optimize_schedule(self) -> ScheduleAdvice:
        daily_goal = await self._store.get_setting(SETTING_DAILY_GOAL, DEFAULT_DAILY_GOAL)
        schedule = await self.get_upcoming_schedule(DEFAULT_SCHEDULE_DAYS)

        overloaded = [d.date for d in schedule if d.count > daily_goal * 1.5]
        if overloaded:
            return ScheduleAdvice(
                needs_optimization=True,
                overloaded_days=overloaded,
                message=(
                    "Consider spreading reviews across multiple days. "
                    f"You have {len(overloaded)} days with heavy load."
                ),
            )
        return ScheduleAdvice(needs_optimization=False, message="Review schedule is well balanced.")
