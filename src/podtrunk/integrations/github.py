"""GitHub hosting client: lands a file in the index repository via a pull request."""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from podtrunk.config import Settings, settings
from podtrunk.errors.exceptions import HostingAPIError
from podtrunk.integrations.base import HostingClient

logger = logging.getLogger(__name__)

# Characters git-check-ref-format rejects anywhere in a ref component
_INVALID_REF_CHARS = re.compile(r"[\x00-\x20\x7f~^:?*\[\\]+")


def sanitize_branch_name(name: str) -> str:
    """Make ``name`` a valid single-component git branch name.

    Applies the rules of ``git check-ref-format``: no control characters,
    spaces, ``~^:?*[\\``, no ``..`` or ``@{``, no leading ``-`` or ``.``, and
    no trailing ``.`` or ``.lock``.
    """
    cleaned = _INVALID_REF_CHARS.sub("-", name.replace("/", "-"))
    cleaned = re.sub(r"\.{2,}", ".", cleaned).replace("@{", "-")
    cleaned = cleaned.lstrip("-.")
    while cleaned.endswith(".lock") or cleaned.endswith("."):
        cleaned = cleaned[:-5] if cleaned.endswith(".lock") else cleaned[:-1]
    if not cleaned or cleaned == "@":
        raise ValueError(f"Cannot derive a branch name from {name!r}")
    return cleaned


class GitHubConfig(BaseModel):
    """Connection settings for the index repository on GitHub."""

    model_config = ConfigDict(extra="forbid")

    api_url: str = "https://api.github.com"
    repo: str = Field(..., pattern=r"^[\w.-]+/[\w.-]+$")
    base_branch: str = "master"
    username: str | None = None
    token: str | None = None
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> GitHubConfig:
        s = source or settings
        return cls(
            api_url=s.github_api_url,
            repo=s.github_repo,
            base_branch=s.github_base_branch,
            username=s.github_username,
            token=s.github_token,
            timeout=s.hosting_timeout_seconds,
        )


class GitHubClient(HostingClient):
    """GitHub REST implementation of ``HostingClient``.

    With both ``username`` and ``token`` configured, requests use basic auth;
    with only a token, a ``Bearer`` header. ``transport`` lets callers swap
    the network layer (e.g. ``httpx.MockTransport``).
    """

    def __init__(self, config: GitHubConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    @property
    def base_branch(self) -> str:
        return self.config.base_branch

    def url_for(self, path: str) -> str:
        return f"{self.config.api_url.rstrip('/')}/repos/{self.config.repo}/{path}"

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def fetch_branch_head(self, branch: str) -> str:
        data = await self._request("GET", f"git/refs/heads/{branch}")
        return self._field(data, "object", "sha")

    async def fetch_tree(self, commit_sha: str) -> str:
        data = await self._request("GET", f"git/commits/{commit_sha}")
        return self._field(data, "tree", "sha")

    async def create_tree(self, base_tree_sha: str, path: str, content: str) -> str:
        data = await self._request("POST", "git/trees", {
            "base_tree": base_tree_sha,
            "tree": [{
                "path": path,
                "mode": "100644",
                "type": "blob",
                "content": content,
            }],
        })
        return self._field(data, "sha")

    async def create_commit(self, tree_sha: str, parent_sha: str, message: str) -> str:
        data = await self._request("POST", "git/commits", {
            "message": message,
            "tree": tree_sha,
            "parents": [parent_sha],
        })
        return self._field(data, "sha")

    async def create_branch(self, name: str, commit_sha: str) -> str:
        data = await self._request("POST", "git/refs", {
            "ref": f"refs/heads/{sanitize_branch_name(name)}",
            "sha": commit_sha,
        })
        return self._field(data, "ref")

    async def create_pull_request(self, title: str, body: str, branch: str) -> int:
        data = await self._request("POST", "pulls", {
            "title": title,
            "body": body,
            "head": branch,
            "base": self.config.base_branch,
        })
        return int(self._field(data, "number"))

    async def merge_pull_request(self, number: int) -> str:
        data = await self._request("PUT", f"pulls/{number}/merge")
        return self._field(data, "sha")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _auth(self) -> tuple[dict[str, str], httpx.BasicAuth | None]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.config.username and self.config.token:
            return headers, httpx.BasicAuth(self.config.username, self.config.token)
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        return headers, None

    async def _request(self, method: str, path: str, payload: dict | None = None) -> dict[str, Any]:
        url = self.url_for(path)
        headers, auth = self._auth()

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.config.timeout) as client:
                response = await client.request(method, url, json=payload, headers=headers, auth=auth)
        except httpx.HTTPError as exc:
            logger.warning("GitHub %s %s failed: %s", method, path, exc)
            raise HostingAPIError(f"GitHub {method} {path} failed: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "GitHub %s %s returned %s: %s",
                method,
                path,
                response.status_code,
                response.text[:500],
            )
            raise HostingAPIError(
                f"GitHub {method} {path} returned {response.status_code}: {response.text[:200]}",
                http_status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise HostingAPIError(f"GitHub {method} {path} returned invalid JSON") from exc

    @staticmethod
    def _field(data: dict[str, Any], *keys: str) -> Any:
        value: Any = data
        for key in keys:
            if not isinstance(value, dict) or value.get(key) is None:
                raise HostingAPIError(f"GitHub response is missing '{'.'.join(keys)}'")
            value = value[key]
        return value
