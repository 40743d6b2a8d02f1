"""
Domain models for words, review statistics and sync snapshots.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Literal

# Word fields callers may set through WordStore.add / WordStore.update.
WORD_FIELDS = (
    "english_term",
    "translated_term",
    "example",
    "unit",
    "created_at",
    "last_reviewed_at",
    "next_review_date",
    "review_count",
    "correct_count",
    "incorrect_count",
    "difficulty",
    "streak",
)


@dataclass
class Word:
    """
    A vocabulary entry and its scheduling state.

    Attributes:
        id: Stable identifier assigned by the store, never reused.
        english_term: Source term; its lower-cased form is the merge key.
        translated_term: Translation shown on the back of the card.
        next_review_date: Epoch millis; the word is due once ``now >= next_review_date``.
        difficulty: 0 (brand new) to 5 (mastered-easy).
        streak: Consecutive correct answers.
    """

    id: int | None
    english_term: str
    translated_term: str
    example: str = ""
    unit: int = 0
    created_at: int = 0
    last_reviewed_at: int | None = None
    next_review_date: int = 0
    review_count: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    difficulty: int = 0
    streak: int = 0

    @property
    def key(self) -> str:
        return self.english_term.lower()

    def is_due(self, now: int) -> bool:
        return now >= self.next_review_date

    def copy(self, **changes: Any) -> "Word":
        return replace(self, **changes)


@dataclass(frozen=True)
class ReviewResult:
    """Outcome of scheduling a single review; computed, not persisted."""

    next_review_date: int
    difficulty: int
    streak: int
    interval_index: int
    days_until_review: int


@dataclass
class ReviewedWord:
    """The persisted word after a review plus the interval it was given."""

    word: Word
    days_until_review: int
    interval_index: int


# ---------- Statistics ----------


@dataclass(frozen=True)
class ReviewEvent:
    word_id: int
    correct: bool
    difficulty: int
    streak: int
    interval_days: int
    date: str = ""
    timestamp: int = 0
    type: Literal["review"] = "review"


@dataclass(frozen=True)
class SessionEvent:
    words_reviewed: int
    correct_answers: int
    incorrect_answers: int
    duration: int  # seconds
    accuracy: int  # percent
    date: str = ""
    timestamp: int = 0
    type: Literal["session"] = "session"


StatisticEvent = ReviewEvent | SessionEvent


# ---------- Reporting ----------


@dataclass
class ScheduleDay:
    date: str
    words: list[Word] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.words)


@dataclass
class LearningStats:
    total_words: int = 0
    new_words: int = 0
    learning: int = 0
    reviewing: int = 0
    mastered: int = 0
    overdue_words: int = 0
    average_retention: int = 0


@dataclass(frozen=True)
class MasteryPrediction:
    mastered: bool
    days_remaining: int
    estimated_date: int | None = None  # epoch millis


@dataclass
class ScheduleAdvice:
    needs_optimization: bool
    message: str
    overloaded_days: list[str] = field(default_factory=list)


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    total: int = 0
    errors: list[str] = field(default_factory=list)


# ---------- Sync ----------


@dataclass
class Dataset:
    """Full exported dataset; the unit of exchange with the remote store."""

    version: int | str
    export_date: str
    words: list[Word] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoteFile:
    content: str  # base64 payload as served by the contents API
    sha: str


@dataclass(frozen=True)
class RepoInfo:
    name: str
    is_private: bool


@dataclass(frozen=True)
class SyncConfig:
    token: str | None
    owner: str | None
    repo: str | None
    branch: str

    @property
    def is_complete(self) -> bool:
        return bool(self.token and self.owner and self.repo)


@dataclass
class SyncResult:
    success: bool
    message: str
    sha: str | None = None
    merged: bool = False
    words_imported: int | None = None


@dataclass
class SyncStatus:
    configured: bool
    message: str | None = None
    last_sync_time: int | None = None
    last_sync_sha: str | None = None
    syncing: bool = False
