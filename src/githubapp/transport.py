"""Installation access token exchange.

An installation token is minted by calling
``POST /app/installations/{id}/access_tokens`` with an app JWT. Tokens last
an hour; ``InstallationAuth`` keeps the current one and mints a new one when
it is about to expire.
"""

import logging
import threading
from collections.abc import Generator
from datetime import timedelta

import httpx

from .exceptions import TransportExchangeError
from .github import DEFAULT_BASE_URL, GitHubClient, build_http_client
from .schemas import InstallationToken
from .tokens import BearerAuth, Clock, new_app_token_source, utcnow

logger = logging.getLogger(__name__)

# Refresh installation tokens this long before they expire
REFRESH_BEFORE = timedelta(minutes=1)


class InstallationAuth(httpx.Auth):
    """httpx auth that authenticates as an app installation."""

    def __init__(
        self,
        app_id: str,
        installation_id: int,
        private_key: bytes | str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        transport: httpx.BaseTransport | None = None,
        clock: Clock = utcnow,
    ):
        self.app_id = app_id
        self.installation_id = installation_id
        self._clock = clock
        self._app_http = build_http_client(
            BearerAuth(new_app_token_source(app_id, private_key, clock=clock)),
            base_url=base_url,
            transport=transport,
        )
        self._apps = GitHubClient(self._app_http)
        self._token: InstallationToken | None = None
        self._lock = threading.Lock()

    def token(self) -> str:
        """Current installation token, minting a new one if needed."""
        with self._lock:
            if self._token is None or self._expiring(self._token):
                self._token = self._exchange()
            return self._token.token

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"token {self.token()}"
        yield request

    def close(self) -> None:
        self._app_http.close()

    def _expiring(self, token: InstallationToken) -> bool:
        return token.expires_at - REFRESH_BEFORE <= self._clock()

    def _exchange(self) -> InstallationToken:
        try:
            token = self._apps.create_installation_token(self.installation_id)
        except httpx.HTTPError as e:
            raise TransportExchangeError(
                f"could not refresh installation id {self.installation_id}'s token: {e}"
            ) from e
        logger.debug(
            f"Minted token for installation {self.installation_id} "
            f"(expires {token.expires_at})"
        )
        return token
