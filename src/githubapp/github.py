"""Sync GitHub API client for the Apps endpoints."""

from typing import Any
from urllib.parse import quote

import httpx

from .schemas import GitHubApp, InstallationRecord, InstallationToken

DEFAULT_BASE_URL = "https://api.github.com"

DEFAULT_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
    "User-Agent": "githubapp-python",
}

DEFAULT_TIMEOUT = 30.0


def build_http_client(
    auth: httpx.Auth | None = None,
    base_url: str = DEFAULT_BASE_URL,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """An httpx client pointed at the GitHub API with the given auth."""
    return httpx.Client(
        base_url=base_url,
        auth=auth,
        headers=DEFAULT_HEADERS,
        timeout=DEFAULT_TIMEOUT,
        transport=transport,
    )


class GitHubClient:
    """GitHub API client bound to an authenticated httpx client.

    The httpx client is shared, not owned: closing it is up to whoever built
    it.
    """

    def __init__(self, http: httpx.Client):
        self.http = http

    def _get(self, url: str, timeout: float | None = None) -> Any:
        response = self.http.get(url, timeout=_timeout(timeout))
        response.raise_for_status()
        return response.json()

    def get_app(self, timeout: float | None = None) -> GitHubApp:
        """The app the JWT belongs to."""
        return GitHubApp.model_validate(self._get("/app", timeout))

    def find_user_installation(
        self, login: str, timeout: float | None = None
    ) -> InstallationRecord:
        """Installation of the app on a user account (404 if none)."""
        data = self._get(f"/users/{_segment(login)}/installation", timeout)
        return InstallationRecord.model_validate(data)

    def find_organization_installation(
        self, org: str, timeout: float | None = None
    ) -> InstallationRecord:
        """Installation of the app on an organization (404 if none)."""
        data = self._get(f"/orgs/{_segment(org)}/installation", timeout)
        return InstallationRecord.model_validate(data)

    def find_repository_installation(
        self, owner: str, repo: str, timeout: float | None = None
    ) -> InstallationRecord:
        """Installation that covers a repository (404 if not granted)."""
        data = self._get(f"/repos/{_segment(owner)}/{_segment(repo)}/installation", timeout)
        return InstallationRecord.model_validate(data)

    def get_installation(
        self, installation_id: int, timeout: float | None = None
    ) -> InstallationRecord:
        data = self._get(f"/app/installations/{int(installation_id)}", timeout)
        return InstallationRecord.model_validate(data)

    def create_installation_token(
        self,
        installation_id: int,
        repositories: list[str] | None = None,
        timeout: float | None = None,
    ) -> InstallationToken:
        """
        Mint an installation access token.

        Must be called with app JWT auth. ``repositories`` narrows the token
        to the named repositories of the installation.
        """
        payload: dict[str, Any] = {}
        if repositories:
            payload["repositories"] = repositories
        response = self.http.post(
            f"/app/installations/{int(installation_id)}/access_tokens",
            json=payload,
            timeout=_timeout(timeout),
        )
        response.raise_for_status()
        return InstallationToken.model_validate(response.json())


def _segment(value: str) -> str:
    """Escape a caller supplied value as a single URL path segment."""
    # "." and ".." would be resolved away by URL normalization
    if value in ("", ".", ".."):
        raise ValueError(f"invalid path segment: {value!r}")
    return quote(value, safe="")


def _timeout(timeout: float | None) -> Any:
    if timeout is None:
        return httpx.USE_CLIENT_DEFAULT
    return timeout
