"""Async GitHub REST API client using httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from repo_assistant.client.config import Settings
from repo_assistant.errors import AuthenticationError, UpstreamError

logger = logging.getLogger("repo_assistant.client")


class GitHubClient:
    """Thin async wrapper around the two GitHub endpoints the service needs.

    One attempt per call: no retry, no caching, no rate-limit handling.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.api_endpoint,
            headers=settings.headers,
            timeout=httpx.Timeout(settings.timeout, connect=10.0),
        )

    @property
    def username(self) -> str:
        return self._settings.username

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: dict | None = None) -> Any:
        try:
            r = await self._client.get(path, params=params)
            r.raise_for_status()
            return r.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("GET %s -> %s", path, status)
            if status == 401:
                raise AuthenticationError(
                    "GitHub rejected the configured credentials"
                ) from e
            raise UpstreamError(
                f"GitHub returned HTTP {status} for {path}",
                status_code=status,
                body=e.response.text,
            ) from e
        except httpx.RequestError as e:
            logger.error("GET %s failed: %s", path, e)
            raise UpstreamError(f"GitHub request failed: {e}") from e

    # ==================================================================
    # REPOSITORIES
    # ==================================================================

    async def list_repositories(self) -> list[str]:
        """Names of the configured user's repositories, in GitHub's order."""
        repos = await self._get(f"/users/{self.username}/repos")
        return [repo["name"] for repo in repos]

    # ==================================================================
    # DEPLOYMENTS
    # ==================================================================

    async def list_deployments(self, repository_name: str) -> list[dict[str, Any]]:
        """Raw deployment records for a repository, passed through as decoded."""
        deployments = await self._get(f"/repos/{self.username}/{repository_name}/deployments")
        return list(deployments or [])
