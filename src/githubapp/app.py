"""GitHub App client that hands out installation clients.

Usage::

    config = AppConfig(app_id="1234", private_key=pem_bytes)
    app = config.new_app(cache=ExpiringMapCache())
    installation = app.installation("octocat")
    installation.http.get("/installation/repositories")
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from .cache import Cache, NoCache, cache_key
from .config import AppConfig
from .exceptions import GitHubAppError, InstallationLookupError, TransportExchangeError
from .github import GitHubClient, build_http_client
from .transport import InstallationAuth
from .utils.lock import RWLock

logger = logging.getLogger(__name__)

# (app_id, installation_id, private_key, base_url=, transport=) -> httpx.Auth
InstallationAuthFactory = Callable[..., httpx.Auth]


@dataclass(frozen=True)
class Installation:
    """Clients authenticated as one installation of the app.

    Holds two httpx clients (its own and the token exchange one); release
    both with ``close()``.
    """

    # httpx client carrying the installation credentials
    http: httpx.Client
    # API client over ``http``
    github: GitHubClient
    id: int

    def close(self) -> None:
        auth = self.http.auth
        if isinstance(auth, InstallationAuth):
            auth.close()
        self.http.close()


class App:
    """A GitHub App that can produce installation clients.

    Options:
        cache: where resolved installations are kept. Without one, every
            ``installation()`` call hits the network.
        transport: httpx transport used for all outgoing requests.
        installation_auth: builds the installation credentials; defaults
            to InstallationAuth.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        cache: Cache | None = None,
        transport: httpx.BaseTransport | None = None,
        installation_auth: InstallationAuthFactory = InstallationAuth,
    ):
        self.config = config
        self.cache: Cache = cache if cache is not None else NoCache()
        self.transport = transport
        self.http = config.client(transport=transport)
        self.github = GitHubClient(self.http)
        self._installation_auth = installation_auth
        self._lock = RWLock()

    def __enter__(self) -> "App":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def installation(self, login: str, timeout: float | None = None) -> Installation:
        """
        Installation clients for a user login.

        Steps:
        1. Return the cached installation if there is one
        2. Look up the login's installation as the app
        3. Build installation credentials and clients
        4. Cache and return them

        ``timeout`` bounds the network calls only.

        The caller owns cleanup of returned installations. Entries the cache
        drops or overwrites (concurrent misses for one login both store) are
        not closed here, since another caller may still be using them; call
        ``Installation.close()`` once an installation is no longer needed.

        Raises:
            InstallationLookupError: the lookup failed (404 when the app is
                not installed for the login).
            TransportExchangeError: the installation credentials could not
                be built.
        """
        inst = self._from_cache(login)
        if inst is not None:
            logger.debug(f"Installation cache hit for {login}")
            return inst

        try:
            record = self.github.find_user_installation(login, timeout=timeout)
        except (httpx.HTTPError, ValueError) as e:
            raise InstallationLookupError(f"failed getting user installation: {e}") from e

        try:
            auth = self._installation_auth(
                self.config.app_id,
                record.id,
                self.config.private_key,
                base_url=self.config.base_url,
                transport=self.transport,
            )
        except (GitHubAppError, ValueError) as e:
            raise TransportExchangeError(f"get install transport: {e}") from e

        http = build_http_client(auth, base_url=self.config.base_url, transport=self.transport)
        inst = Installation(http=http, github=GitHubClient(http), id=record.id)
        self._to_cache(login, inst)
        logger.info(f"Resolved installation {inst.id} for {login}")
        return inst

    def _from_cache(self, login: str) -> Installation | None:
        with self._lock.read():
            return self.cache.get(cache_key(login))

    def _to_cache(self, login: str, inst: Installation) -> None:
        with self._lock.write():
            self.cache.set(cache_key(login), inst)
