import pytest

from lexicard.domain.constants import MS_PER_DAY
from lexicard.domain.models import Word
from lexicard.infrastructure.persistence.sqlite_store import SqliteWordStore

# 2024-01-15T12:00:00Z
START_MS = 1705320000000


class FakeClock:
    """Manually advanced epoch-millis clock."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, days: float = 0, ms: int = 0) -> None:
        self.now += int(days * MS_PER_DAY) + ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path, clock):
    """A file-backed store in a temp dir, driven by the fake clock."""
    s = SqliteWordStore(tmp_path / "lexicard.db", clock=clock)
    yield s
    s.engine.dispose()


@pytest.fixture
def isolated_config(monkeypatch):
    """Keeps the developer's config files and LEXICARD_* variables out of a test."""
    monkeypatch.setattr("lexicard.application.config.CONFIG_FILES", [])
    for name in ("DB_PATH", "GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPO", "VERBOSE"):
        monkeypatch.delenv(f"LEXICARD_{name}", raising=False)


@pytest.fixture
def make_word():
    """Factory for a fresh, immediately due word."""

    def factory(**overrides) -> Word:
        fields = dict(
            id=1,
            english_term="apple",
            translated_term="苹果",
            created_at=START_MS,
            next_review_date=START_MS,
        )
        fields.update(overrides)
        return Word(**fields)

    return factory
