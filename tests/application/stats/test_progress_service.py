from unittest.mock import AsyncMock

import pytest

from lexicard.application.scheduler import Scheduler
from lexicard.application.session import StudySession
from lexicard.application.stats import MetricsCalculator, ProgressService
from lexicard.domain.models import LearningStats, ReviewEvent


@pytest.fixture
def scheduler(store, clock):
    return Scheduler(store, clock=clock)


@pytest.fixture
def service(store, scheduler, clock):
    return ProgressService(store, scheduler, MetricsCalculator(), clock=clock)


async def _add(store, term, **fields):
    return await store.add({"english_term": term, "translated_term": term.upper(), **fields})


@pytest.mark.asyncio
async def test_streak_from_activity(store, scheduler, service, clock):
    word_id = await _add(store, "apple")
    await scheduler.review_word(word_id, True)
    clock.advance(days=1)
    await scheduler.review_word(word_id, True)

    assert await service.get_streak() == 2

    clock.advance(days=2)
    assert await service.get_streak() == 0


@pytest.mark.asyncio
async def test_statistics_summary(store, scheduler, service):
    first = await _add(store, "apple")
    second = await _add(store, "pear")
    await _add(store, "plum", review_count=5, correct_count=5, difficulty=4)
    await scheduler.review_word(first, True)
    await scheduler.review_word(second, False)

    summary = await service.get_statistics_summary()

    assert summary.total_words == 3
    assert summary.mastered_words == 1
    assert summary.learning_words == 2
    assert summary.new_words == 0
    assert summary.today_reviewed == 2
    assert summary.today_correct == 1
    assert summary.streak == 1


@pytest.mark.asyncio
async def test_progress(store, scheduler, service):
    word_id = await _add(store, "apple")
    await _add(store, "pear")
    await scheduler.review_word(word_id, True)

    progress = await service.get_progress()

    assert progress.total_words == 2
    assert progress.new_words == 1
    assert progress.learning_words == 1
    assert progress.today_reviewed == 1
    assert progress.today_correct == 1
    assert progress.accuracy == 100
    assert progress.streak == 1


@pytest.mark.asyncio
async def test_detailed_stats_with_session(store, scheduler, service, clock):
    await _add(store, "apple")
    await _add(store, "pear")
    session = StudySession(store, scheduler, clock=clock)
    await session.load_today_words()
    await session.mark_word(False)

    detailed = await service.get_detailed_stats(session)

    assert detailed.today_progress.completed == 1
    assert detailed.today_progress.incorrect == 1
    assert detailed.today_progress.remaining == 1
    assert len(detailed.schedule) == 7
    assert detailed.learning_stats.total_words == 2
    assert (await service.get_detailed_stats()).today_progress is None


def _service_with(progress_stats: LearningStats, today_reviews: int, goal: int = 20):
    store = AsyncMock()
    store.get_setting.return_value = goal
    store.get_statistics_by_date.return_value = [
        ReviewEvent(word_id=i, correct=True, difficulty=1, streak=1, interval_days=2)
        for i in range(today_reviews)
    ]
    store.get_statistic_dates.return_value = []
    scheduler = AsyncMock()
    scheduler.get_learning_stats.return_value = progress_stats
    return ProgressService(store, scheduler, clock=lambda: 0)


@pytest.mark.asyncio
async def test_suggested_goal_goes_up_when_doing_well():
    service = _service_with(LearningStats(average_retention=90), today_reviews=20)
    assert await service.get_suggested_daily_goal() == 25


@pytest.mark.asyncio
async def test_suggested_goal_goes_down_when_struggling():
    service = _service_with(LearningStats(average_retention=50), today_reviews=20)
    assert await service.get_suggested_daily_goal() == 15

    service = _service_with(LearningStats(average_retention=70), today_reviews=5)
    assert await service.get_suggested_daily_goal() == 15


@pytest.mark.asyncio
async def test_suggested_goal_stays_within_bounds():
    service = _service_with(LearningStats(average_retention=95), today_reviews=50, goal=50)
    assert await service.get_suggested_daily_goal() == 50

    service = _service_with(LearningStats(average_retention=10), today_reviews=0, goal=10)
    assert await service.get_suggested_daily_goal() == 10


@pytest.mark.asyncio
async def test_suggested_goal_unchanged_in_middle():
    service = _service_with(LearningStats(average_retention=70), today_reviews=15)
    assert await service.get_suggested_daily_goal() == 20


@pytest.mark.asyncio
async def test_achievements(store, service):
    for i in range(10):
        await _add(store, f"word{i}")

    ids = [a.id for a in await service.check_achievements()]

    assert ids == ["beginner"]


@pytest.mark.asyncio
async def test_achievements_for_mastery_and_accuracy(store, service):
    for i in range(20):
        await _add(store, f"word{i}", review_count=6, correct_count=6, difficulty=5)

    ids = {a.id for a in await service.check_achievements()}

    assert ids == {"beginner", "master_20", "accuracy_90"}
