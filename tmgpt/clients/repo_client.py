import logging
from typing import Optional
from urllib.parse import quote

import httpx

from tmgpt.clients.errors import read_json, translate_http_errors
from tmgpt.core.config import RepositorySettings
from tmgpt.core.exceptions import ExternalServiceError
from tmgpt.core.models import RepoEntry

logger = logging.getLogger(__name__)

SERVICE_NAME = "REPO"

GITHUB_JSON = "application/vnd.github+json"
GITHUB_RAW = "application/vnd.github.raw"


def _contents_url(owner: str, repo: str, path: str) -> str:
    return f"/repos/{quote(owner)}/{quote(repo)}/contents/{quote(path.strip('/'))}"


class RepoContentAsyncClient:
    """Read-only client for a repository contents API (GitHub REST v3)."""

    def __init__(
        self,
        settings: RepositorySettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _auth(self) -> Optional[httpx.BasicAuth]:
        token = self.settings.GITHUB_TOKEN
        if token is None or not token.get_secret_value():
            return None
        return httpx.BasicAuth(self.settings.GITHUB_USERNAME or "", token.get_secret_value())

    async def __aenter__(self) -> "RepoContentAsyncClient":
        self._client = httpx.AsyncClient(
            base_url=self.settings.GITHUB_API_URL.rstrip("/"),
            auth=self._auth(),
            timeout=self.settings.REPO_REQUEST_TIMEOUT_SECONDS,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client is not started. Use 'async with RepoContentAsyncClient(...)'.")
        return self._client

    async def list_directory(self, owner: str, repo: str, path: str, ref: str) -> list[RepoEntry]:
        with translate_http_errors(SERVICE_NAME):
            resp = await self._http().get(
                _contents_url(owner, repo, path),
                params={"ref": ref},
                headers={"Accept": GITHUB_JSON},
            )
            resp.raise_for_status()
        data = read_json(resp, SERVICE_NAME)
        if not isinstance(data, list):
            raise ExternalServiceError(
                service_name=SERVICE_NAME,
                error_type="bad_response",
                message=f"{path} is not a directory",
                details={"owner": owner, "repo": repo, "path": path},
            )
        return [RepoEntry.model_validate(item) for item in data if isinstance(item, dict)]

    async def get_raw_content(self, owner: str, repo: str, path: str, ref: str) -> bytes:
        with translate_http_errors(SERVICE_NAME):
            resp = await self._http().get(
                _contents_url(owner, repo, path),
                params={"ref": ref},
                headers={"Accept": GITHUB_RAW},
            )
            resp.raise_for_status()
        return resp.content

    def web_url(self, owner: str, repo: str, path: str, ref: str) -> str:
        """Deep link to a file in the repository web UI."""
        base = self.settings.GITHUB_WEB_URL.rstrip("/")
        return f"{base}/{quote(owner)}/{quote(repo)}/blob/{quote(ref)}/{quote(path.strip('/'))}"
