"""
Ports (interfaces) for persistence and remote storage.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from .models import Dataset, RemoteFile, RepoInfo, StatisticEvent, Word


class WordStore(ABC):
    """
    Port for persisting words, settings and statistic events.

    Implementations:
        - SqliteWordStore: SQLAlchemy over a local SQLite file.
    """

    @abstractmethod
    async def get(self, word_id: int) -> Word | None:
        pass

    @abstractmethod
    async def get_all(self) -> list[Word]:
        pass

    @abstractmethod
    async def add(self, fields: dict[str, Any]) -> int:
        """
        Create a word from ``english_term``/``translated_term`` (required) plus optional
        ``example`` and ``unit``. Scheduling fields start fresh unless supplied.

        Returns:
            The new word id.
        """
        pass

    @abstractmethod
    async def update(self, word_id: int, fields: dict[str, Any]) -> Word:
        """Apply a partial update. Raises NotFoundError for an unknown id."""
        pass

    @abstractmethod
    async def delete(self, word_id: int) -> None:
        pass

    @abstractmethod
    async def search(self, query: str) -> list[Word]:
        """Case-insensitive substring on the source term, substring on the translation."""
        pass

    @abstractmethod
    async def get_due_for_review(self, limit: int) -> list[Word]:
        """Due words, earliest ``next_review_date`` first, at most ``limit``."""
        pass

    @abstractmethod
    async def get_never_reviewed(
        self, limit: int, exclude_ids: Iterable[int] = ()
    ) -> list[Word]:
        pass

    @abstractmethod
    async def get_words_by_unit(self, unit: int) -> list[Word]:
        pass

    @abstractmethod
    async def get_all_units(self) -> list[int]:
        pass

    @abstractmethod
    async def get_setting(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    async def set_setting(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    async def get_all_settings(self) -> dict[str, Any]:
        pass

    @abstractmethod
    async def append_statistic(self, event: StatisticEvent) -> StatisticEvent:
        """Stamp the event with the current date/timestamp and store it."""
        pass

    @abstractmethod
    async def get_statistics_by_date(
        self, start: str, end: str | None = None
    ) -> list[StatisticEvent]:
        """Events whose date falls in ``[start, end]`` (``end`` defaults to ``start``)."""
        pass

    @abstractmethod
    async def get_statistic_dates(self) -> list[str]:
        """Distinct event dates, newest first."""
        pass

    @abstractmethod
    async def export_snapshot(self) -> Dataset:
        pass

    @abstractmethod
    async def import_snapshot(self, dataset: Dataset) -> int:
        """Destructively replace all words and settings. Returns the number of words."""
        pass

    @abstractmethod
    async def clear_all(self) -> None:
        pass

    async def close(self) -> None:
        return None


class RemoteContentStore(ABC):
    """
    Port for a content-addressed remote file store.

    Implementations:
        - GitHubContentsAdapter: GitHub repository contents API over httpx.
    """

    @abstractmethod
    async def fetch_file(self, path: str, ref: str) -> RemoteFile:
        """Raises NotFoundError when the file does not exist."""
        pass

    @abstractmethod
    async def put_file(
        self,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> str:
        """
        Create or replace a file.

        Args:
            content: Base64-encoded payload.
            sha: Expected current revision token; omitted when creating.

        Returns:
            The new revision token.
        """
        pass

    @abstractmethod
    async def get_repo_info(self) -> RepoInfo:
        pass

    async def close(self) -> None:
        return None
