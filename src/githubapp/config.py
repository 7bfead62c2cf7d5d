"""GitHub App identity configuration."""

from datetime import timedelta
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from .cache import Cache, ExpiringMapCache, NoCache
from .github import DEFAULT_BASE_URL, build_http_client
from .tokens import BearerAuth, ReuseTokenSource, new_app_token_source

if TYPE_CHECKING:
    from .app import App


class AppConfig(BaseModel):
    """Identity of a GitHub App. Immutable once built."""

    model_config = {"frozen": True}

    # App ID from the GitHub App settings page
    app_id: str
    # PEM bytes of the app private key, e.g.
    # ``os.environ["GITHUB_APP_PRIVATE_KEY"].encode()``
    private_key: bytes = Field(repr=False)
    # Lifetime of app JWTs; 0 or anything over 10 minutes means 10 minutes
    expire: timedelta = timedelta(0)
    base_url: str = DEFAULT_BASE_URL

    @field_validator("app_id", mode="before")
    @classmethod
    def _coerce_app_id(cls, v: Any) -> Any:
        # settings files often parse numeric ids as ints
        if isinstance(v, int):
            return str(v)
        return v

    def token_source(self) -> ReuseTokenSource:
        """
        Reusing token source that signs app JWTs.

        Raises ConfigurationError right away if the private key is invalid.
        """
        return new_app_token_source(self.app_id, self.private_key, self.expire)

    def client(self, transport: httpx.BaseTransport | None = None) -> httpx.Client:
        """httpx client authenticating every request with the app JWT."""
        return build_http_client(
            BearerAuth(self.token_source()),
            base_url=self.base_url,
            transport=transport,
        )

    def new_app(self, **kwargs: Any) -> "App":
        """Build an App for this identity; see App for the options."""
        from .app import App

        return App(self, **kwargs)


class Settings(BaseSettings):
    """GitHub App settings loaded from environment variables."""

    github_app_id: str = Field(..., description="GitHub App ID")
    github_app_private_key: str = Field(
        ...,
        description="GitHub App private key (PEM format)",
    )
    github_app_token_expire_seconds: int = Field(
        600,
        description="App JWT lifetime, clamped to 10 minutes",
    )
    github_api_url: str = Field(DEFAULT_BASE_URL)

    # Installation cache; a TTL of 0 disables it
    github_app_cache_ttl_seconds: int = Field(
        3600,
        description="How long resolved installations stay cached",
    )
    github_app_cache_cleanup_seconds: int = Field(
        600,
        description="How often expired cache entries are purged",
    )

    log_level: str = Field("INFO")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def app_config(self) -> AppConfig:
        # PEM keys in env vars are often single-line with escaped newlines
        private_key = self.github_app_private_key.replace("\\n", "\n")
        return AppConfig(
            app_id=self.github_app_id,
            private_key=private_key.encode(),
            expire=timedelta(seconds=self.github_app_token_expire_seconds),
            base_url=self.github_api_url,
        )

    def cache(self) -> Cache:
        if self.github_app_cache_ttl_seconds <= 0:
            return NoCache()
        return ExpiringMapCache(
            default_expiration=self.github_app_cache_ttl_seconds,
            cleanup_interval=self.github_app_cache_cleanup_seconds,
        )
