import pytest

from lexicard.application.stats.metrics_calculator import MetricsCalculator, round_half_up
from lexicard.domain.constants import MS_PER_DAY


@pytest.fixture
def calculator():
    return MetricsCalculator()


@pytest.mark.parametrize("value, expected", [(2.5, 3), (3.5, 4), (2.4, 2), (0.5, 1), (6.5, 7)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_retention(calculator, make_word):
    assert calculator.calculate_retention(make_word()) == 0
    assert calculator.calculate_retention(make_word(review_count=3, correct_count=2)) == 67


def test_summarize_stages(calculator, make_word, clock):
    now = clock()
    words = [
        make_word(id=1),
        make_word(id=2, review_count=1, correct_count=1, difficulty=1),
        make_word(id=3, review_count=4, correct_count=2, difficulty=2),
        make_word(id=4, review_count=8, correct_count=8, difficulty=5),
        make_word(id=5, review_count=2, correct_count=2, difficulty=4, next_review_date=now - 1),
    ]

    stats = calculator.summarize(words, now)

    assert stats.total_words == 5
    assert stats.new_words == 1
    assert stats.learning == 1
    assert stats.reviewing == 1
    assert stats.mastered == 2
    assert stats.overdue_words == 1
    # (100 + 50 + 100 + 100) / 4 = 87.5
    assert stats.average_retention == 88


def test_summarize_empty(calculator, clock):
    stats = calculator.summarize([], clock())
    assert stats.total_words == 0
    assert stats.average_retention == 0


def test_predict_mastery(calculator, make_word, clock):
    now = clock()

    assert calculator.predict_mastery(make_word(difficulty=4), now).mastered is True

    strong = calculator.predict_mastery(
        make_word(review_count=2, correct_count=2, difficulty=2), now
    )
    assert strong.mastered is False
    # 3 reviews * 7 days * 0.8
    assert strong.days_remaining == 17
    assert strong.estimated_date == now + int(21 * 0.8 * MS_PER_DAY)

    weak = calculator.predict_mastery(make_word(review_count=2, correct_count=1, difficulty=1), now)
    assert weak.days_remaining == 25  # 21 * 1.2 = 25.2


def test_predict_mastery_never_negative(calculator, make_word, clock):
    word = make_word(review_count=9, correct_count=4, difficulty=3)
    assert calculator.predict_mastery(word, clock()).days_remaining == 0


def test_compute_streak(calculator):
    dates = ["2024-01-15", "2024-01-14", "2024-01-13", "2024-01-10"]

    assert calculator.compute_streak(dates, "2024-01-15") == 3
    assert calculator.compute_streak(dates, "2024-01-16") == 0
    assert calculator.compute_streak([], "2024-01-15") == 0


def test_compute_streak_crosses_month_boundary(calculator):
    assert calculator.compute_streak(["2024-03-01", "2024-02-29", "2024-02-28"], "2024-03-01") == 3
