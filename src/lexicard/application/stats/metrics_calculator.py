"""
Metrics calculator for deriving learning insights from word state.

This is a pure computation module with no I/O.
"""

import math
from collections.abc import Iterable

from lexicard.domain.clock import previous_date
from lexicard.domain.constants import (
    AVERAGE_REVIEW_GAP_DAYS,
    LEARNING_REVIEW_LIMIT,
    MASTERED_DIFFICULTY,
    MASTERY_REVIEWS,
    MS_PER_DAY,
)
from lexicard.domain.models import LearningStats, MasteryPrediction, Word


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounding up (2.5 -> 3)."""
    return math.floor(value + 0.5)


class MetricsCalculator:
    """
    Computes derived metrics from Word objects.

    Stateless and side-effect free.
    """

    def calculate_retention(self, word: Word) -> int:
        """Percentage of correct answers, 0 for a word that was never reviewed."""
        if word.review_count == 0:
            return 0
        return round_half_up(word.correct_count / word.review_count * 100)

    def summarize(self, words: Iterable[Word], now: int) -> LearningStats:
        """
        Bucket words into mutually exclusive learning stages.

        Stages are checked in order: new, mastered, learning, reviewing.
        """
        stats = LearningStats()
        total_retention = 0
        reviewed = 0

        for word in words:
            stats.total_words += 1
            if word.review_count == 0:
                stats.new_words += 1
            elif word.difficulty >= MASTERED_DIFFICULTY:
                stats.mastered += 1
            elif word.review_count < LEARNING_REVIEW_LIMIT:
                stats.learning += 1
            else:
                stats.reviewing += 1

            if word.next_review_date < now:
                stats.overdue_words += 1

            if word.review_count > 0:
                total_retention += self.calculate_retention(word)
                reviewed += 1

        if reviewed:
            stats.average_retention = round_half_up(total_retention / reviewed)
        return stats

    def predict_mastery(self, word: Word, now: int) -> MasteryPrediction:
        """
        Rough estimate of the days left before a word reaches the mastered stage.

        Assumes one review per week, sped up for words answered well.
        """
        if word.difficulty >= MASTERED_DIFFICULTY:
            return MasteryPrediction(mastered=True, days_remaining=0)

        remaining_reviews = max(0, MASTERY_REVIEWS - word.review_count)
        estimated_days = remaining_reviews * AVERAGE_REVIEW_GAP_DAYS
        factor = 0.8 if self.calculate_retention(word) > 80 else 1.2
        return MasteryPrediction(
            mastered=False,
            days_remaining=round_half_up(estimated_days * factor),
            estimated_date=now + int(estimated_days * factor * MS_PER_DAY),
        )

    def compute_streak(self, dates: Iterable[str], today: str) -> int:
        """
        Count consecutive study days ending today.

        A day counts when any statistic event was recorded on it.
        """
        seen = set(dates)
        streak = 0
        day = today
        while day in seen:
            streak += 1
            day = previous_date(day)
        return streak
