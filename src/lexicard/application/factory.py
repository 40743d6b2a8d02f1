"""
Application Factory
Centralizes construction of the store, remote adapter and services so every
entry point shares one explicitly owned set of collaborators.
"""

from dataclasses import dataclass

from lexicard.application.config import AppConfig
from lexicard.application.scheduler import Scheduler
from lexicard.application.session import StudySession
from lexicard.application.stats import MetricsCalculator, ProgressService
from lexicard.application.sync_service import RemoteFactory, SyncService
from lexicard.application.word_service import WordService
from lexicard.domain.clock import Clock, now_ms
from lexicard.domain.models import SyncConfig
from lexicard.domain.ports import RemoteContentStore, WordStore
from lexicard.infrastructure.adapters.github_contents import GitHubContentsAdapter
from lexicard.infrastructure.persistence.sqlite_store import SqliteWordStore


def get_word_store(config: AppConfig, clock: Clock = now_ms) -> WordStore:
    return SqliteWordStore(config.db_path, clock=clock)


def github_remote_factory(config: AppConfig) -> RemoteFactory:
    """Returns a factory building a GitHub adapter for the resolved sync credentials."""

    def build(sync_config: SyncConfig) -> RemoteContentStore:
        return GitHubContentsAdapter(
            token=sync_config.token or "",
            owner=sync_config.owner or "",
            repo=sync_config.repo or "",
            api_url=config.github_api_url,
            timeout=config.request_timeout,
        )

    return build


@dataclass
class AppContext:
    store: WordStore
    scheduler: Scheduler
    words: WordService
    progress: ProgressService
    sync: SyncService
    clock: Clock

    def new_session(self) -> StudySession:
        return StudySession(self.store, self.scheduler, clock=self.clock)

    async def close(self) -> None:
        await self.store.close()


def build_context(
    config: AppConfig,
    store: WordStore | None = None,
    remote_factory: RemoteFactory | None = None,
    clock: Clock = now_ms,
) -> AppContext:
    store = store or get_word_store(config, clock)
    calculator = MetricsCalculator()
    scheduler = Scheduler(store, calculator, clock=clock)
    sync = SyncService(
        store,
        remote_factory or github_remote_factory(config),
        data_file_path=config.data_file_path,
        defaults=SyncConfig(
            token=config.github_token,
            owner=config.github_owner,
            repo=config.github_repo,
            branch=config.github_branch,
        ),
        clock=clock,
    )
    return AppContext(
        store=store,
        scheduler=scheduler,
        words=WordService(store, clock=clock),
        progress=ProgressService(store, scheduler, calculator, clock=clock),
        sync=sync,
        clock=clock,
    )
