"""GitHub App authentication: app JWTs and cached installation clients."""

from .app import App, Installation
from .cache import Cache, ExpiringMapCache, NoCache, cache_key
from .config import AppConfig, Settings
from .exceptions import (
    ConfigurationError,
    GitHubAppError,
    InstallationLookupError,
    SigningError,
    TransportExchangeError,
)
from .github import GitHubClient
from .tokens import (
    AppTokenSource,
    BearerAuth,
    ReuseTokenSource,
    Token,
    TokenSource,
    new_app_token_source,
)
from .transport import InstallationAuth
from .utils import setup_logging

__version__ = "0.1.0"

__all__ = [
    "App",
    "AppConfig",
    "AppTokenSource",
    "BearerAuth",
    "Cache",
    "ConfigurationError",
    "ExpiringMapCache",
    "GitHubAppError",
    "GitHubClient",
    "Installation",
    "InstallationAuth",
    "InstallationLookupError",
    "NoCache",
    "ReuseTokenSource",
    "Settings",
    "SigningError",
    "Token",
    "TokenSource",
    "TransportExchangeError",
    "cache_key",
    "new_app_token_source",
    "setup_logging",
]
