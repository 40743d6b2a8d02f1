"""
Sync Service — Application layer orchestrator for remote synchronization.

Drives the upload, download and merge protocols between the local Word Store
and a remote content store. Revision tokens act as compare-and-swap
preconditions on writes.
"""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from lexicard.application.merge import merge_data
from lexicard.application.utils.codec import decode_dataset, encode_dataset
from lexicard.domain.clock import Clock, iso_str, now_ms
from lexicard.domain.constants import (
    DATA_FILE_PATH,
    DEFAULT_BRANCH,
    SETTING_GITHUB_BRANCH,
    SETTING_GITHUB_OWNER,
    SETTING_GITHUB_REPO,
    SETTING_GITHUB_TOKEN,
    SETTING_LAST_SYNC_SHA,
    SETTING_LAST_SYNC_TIME,
)
from lexicard.domain.errors import ConcurrentSyncError, NotFoundError, ValidationError
from lexicard.domain.models import RepoInfo, SyncConfig, SyncResult, SyncStatus
from lexicard.domain.ports import RemoteContentStore, WordStore

logger = logging.getLogger(__name__)

RemoteFactory = Callable[[SyncConfig], RemoteContentStore]


class SyncService:
    """
    Application service for synchronizing the dataset with a remote store.

    The three sync entry points are mutually exclusive: a call made while
    another is running fails immediately with ConcurrentSyncError.
    """

    def __init__(
        self,
        store: WordStore,
        remote_factory: RemoteFactory,
        data_file_path: str = DATA_FILE_PATH,
        defaults: SyncConfig | None = None,
        clock: Clock = now_ms,
    ):
        """
        Args:
            store: The local Word Store.
            remote_factory: Builds a remote adapter for the resolved sync config.
            data_file_path: Path of the dataset file inside the remote repository.
            defaults: Fallback credentials when none are saved in the store.
        """
        self._store = store
        self._remote_factory = remote_factory
        self.data_file_path = data_file_path
        self._defaults = defaults or SyncConfig(None, None, None, DEFAULT_BRANCH)
        self._clock = clock
        self._syncing = False

    @property
    def syncing(self) -> bool:
        return self._syncing

    # ---------- Configuration ----------

    async def get_config(self) -> SyncConfig:
        d = self._defaults
        return SyncConfig(
            token=await self._store.get_setting(SETTING_GITHUB_TOKEN) or d.token,
            owner=await self._store.get_setting(SETTING_GITHUB_OWNER) or d.owner,
            repo=await self._store.get_setting(SETTING_GITHUB_REPO) or d.repo,
            branch=await self._store.get_setting(SETTING_GITHUB_BRANCH) or d.branch,
        )

    async def save_config(
        self, token: str, owner: str, repo: str, branch: str = DEFAULT_BRANCH
    ) -> None:
        await self._store.set_setting(SETTING_GITHUB_TOKEN, token)
        await self._store.set_setting(SETTING_GITHUB_OWNER, owner)
        await self._store.set_setting(SETTING_GITHUB_REPO, repo)
        await self._store.set_setting(SETTING_GITHUB_BRANCH, branch)
        logger.info(f"Saved sync config for {owner}/{repo}@{branch}")

    async def is_configured(self) -> bool:
        return (await self.get_config()).is_complete

    async def _require_config(self) -> SyncConfig:
        config = await self.get_config()
        if not config.is_complete:
            raise ValidationError("Sync is not configured: token, owner and repo are required")
        return config

    # ---------- Guards ----------

    @asynccontextmanager
    async def _sync_guard(self) -> AsyncIterator[None]:
        # Taken before the first await of every entry point.
        if self._syncing:
            raise ConcurrentSyncError()
        self._syncing = True
        try:
            yield
        finally:
            self._syncing = False

    @asynccontextmanager
    async def _open_remote(self, config: SyncConfig) -> AsyncIterator[RemoteContentStore]:
        remote = self._remote_factory(config)
        try:
            yield remote
        finally:
            await remote.close()

    # ---------- Protocols ----------

    async def upload(self) -> SyncResult:
        """
        Push the local snapshot, guarded by the last recorded revision token.

        The token is not re-fetched first; a stale token makes the remote reject
        the write instead of silently overwriting changes made elsewhere.
        """
        async with self._sync_guard():
            config = await self._require_config()
            last_sha = await self._store.get_setting(SETTING_LAST_SYNC_SHA)
            async with self._open_remote(config) as remote:
                return await self._upload(remote, config, last_sha)

    async def download(self) -> SyncResult:
        """Replace all local data with the remote snapshot."""
        async with self._sync_guard():
            config = await self._require_config()
            async with self._open_remote(config) as remote:
                remote_file = await remote.fetch_file(self.data_file_path, config.branch)

            dataset = decode_dataset(remote_file.content)
            count = await self._store.import_snapshot(dataset)
            await self._record_sync(remote_file.sha)

            logger.info(f"[sync] downloaded {count} words sha={remote_file.sha}")
            return SyncResult(
                success=True,
                message="Data downloaded from GitHub",
                sha=remote_file.sha,
                words_imported=count,
            )

    async def smart_sync(self) -> SyncResult:
        """
        Merge local and remote snapshots, store the result locally, and push it.

        A missing remote file is not an error: the local snapshot is uploaded instead.
        """
        async with self._sync_guard():
            config = await self._require_config()
            async with self._open_remote(config) as remote:
                try:
                    remote_file = await remote.fetch_file(self.data_file_path, config.branch)
                except NotFoundError:
                    logger.info("[sync] no remote data found, uploading local data")
                    return await self._upload(remote, config, None)

                remote_data = decode_dataset(remote_file.content)
                local_data = await self._store.export_snapshot()
                merged = merge_data(local_data, remote_data, clock=self._clock)

                await self._store.import_snapshot(merged)
                new_sha = await remote.put_file(
                    self.data_file_path,
                    encode_dataset(merged),
                    f"Merge vocabulary data - {iso_str(self._clock())}",
                    config.branch,
                    sha=remote_file.sha,
                )

            await self._record_sync(new_sha)
            logger.info(f"[sync] merged {len(merged.words)} words sha={new_sha}")
            return SyncResult(
                success=True,
                message="Data merged and synchronized",
                sha=new_sha,
                merged=True,
            )

    async def _upload(
        self, remote: RemoteContentStore, config: SyncConfig, sha: str | None
    ) -> SyncResult:
        snapshot = await self._store.export_snapshot()
        new_sha = await remote.put_file(
            self.data_file_path,
            encode_dataset(snapshot),
            f"Update vocabulary data - {iso_str(self._clock())}",
            config.branch,
            sha=sha,
        )
        await self._record_sync(new_sha)

        logger.info(f"[sync] uploaded {len(snapshot.words)} words sha={new_sha}")
        return SyncResult(success=True, message="Data uploaded to GitHub", sha=new_sha)

    async def _record_sync(self, sha: str) -> None:
        await self._store.set_setting(SETTING_LAST_SYNC_TIME, self._clock())
        await self._store.set_setting(SETTING_LAST_SYNC_SHA, sha)

    # ---------- Status ----------

    async def test_connection(self) -> RepoInfo:
        config = await self._require_config()
        async with self._open_remote(config) as remote:
            return await remote.get_repo_info()

    async def get_last_sync_time(self) -> int | None:
        return await self._store.get_setting(SETTING_LAST_SYNC_TIME)

    async def get_sync_status(self) -> SyncStatus:
        if not await self.is_configured():
            return SyncStatus(configured=False, message="GitHub sync is not configured")

        return SyncStatus(
            configured=True,
            last_sync_time=await self.get_last_sync_time(),
            last_sync_sha=await self._store.get_setting(SETTING_LAST_SYNC_SHA),
            syncing=self._syncing,
        )
