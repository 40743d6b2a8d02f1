import logging
from typing import Any
from urllib.parse import quote

import httpx

from lexicard.domain.constants import GITHUB_API_URL, REQUEST_TIMEOUT
from lexicard.domain.errors import ConflictError, NotFoundError, TransportError
from lexicard.domain.models import RemoteFile, RepoInfo
from lexicard.domain.ports import RemoteContentStore

# Statuses GitHub uses to reject a contents write: bad credentials, no access,
# stale sha, or a malformed request.
REJECTED_WRITE_STATUSES = {401, 403, 409, 422}


class GitHubContentsAdapter(RemoteContentStore):
    """Adapter for a single repository's files via the GitHub REST contents API."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        api_url: str = GITHUB_API_URL,
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self._timeout = timeout
        self._client = client
        self.logger.debug(f"GitHubContentsAdapter initialized for {owner}/{repo} at {self.api_url}")

    @property
    def repo_url(self) -> str:
        return f"{self.api_url}/repos/{quote(self.owner)}/{quote(self.repo)}"

    def _contents_url(self, path: str) -> str:
        return f"{self.repo_url}/contents/{quote(path)}"

    async def fetch_file(self, path: str, ref: str) -> RemoteFile:
        resp = await self._request("GET", self._contents_url(path), params={"ref": ref})
        if resp.status_code == 404:
            raise NotFoundError(f"Remote file does not exist: {path}")
        if not resp.is_success:
            raise TransportError(
                f"Failed to fetch file: {resp.status_code}", status=resp.status_code
            )

        data = resp.json()
        self.logger.debug(f"[github] fetched {path}@{ref} sha={data.get('sha')}")
        return RemoteFile(content=data.get("content", ""), sha=data["sha"])

    async def put_file(
        self,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> str:
        body: dict[str, Any] = {"message": message, "content": content, "branch": branch}
        if sha:
            body["sha"] = sha

        resp = await self._request("PUT", self._contents_url(path), json=body)
        if not resp.is_success:
            detail = self._error_message(resp) or f"Upload failed: {resp.status_code}"
            if resp.status_code in REJECTED_WRITE_STATUSES:
                raise ConflictError(detail, status=resp.status_code)
            raise TransportError(detail, status=resp.status_code)

        new_sha = resp.json()["content"]["sha"]
        self.logger.info(f"[github] wrote {path} on {branch} sha={new_sha}")
        return new_sha

    async def get_repo_info(self) -> RepoInfo:
        resp = await self._request("GET", self.repo_url)
        if resp.status_code == 401:
            raise ConflictError("Token is invalid or expired", status=401)
        if resp.status_code == 404:
            raise NotFoundError(f"Repository does not exist: {self.owner}/{self.repo}")
        if not resp.is_success:
            raise TransportError(
                f"Connection failed: {resp.status_code}", status=resp.status_code
            )

        data = resp.json()
        return RepoInfo(name=data["full_name"], is_private=bool(data.get("private")))

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        try:
            return await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as e:
            self.logger.error(f"GitHub call failed: {method} {url}: {e}")
            raise TransportError(f"Network error: {e}") from e

    @staticmethod
    def _error_message(resp: httpx.Response) -> str | None:
        try:
            return resp.json().get("message")
        except ValueError:
            return None

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
