"""Exceptions raised while issuing GitHub App credentials."""


class GitHubAppError(RuntimeError):
    """Base class for GitHub App authentication errors."""


class ConfigurationError(GitHubAppError):
    """The app identity is unusable (e.g. the private key does not parse)."""


class SigningError(GitHubAppError):
    """The app JWT could not be encoded or signed."""


class InstallationLookupError(GitHubAppError):
    """Resolving a login to an installation failed (not found, network, auth)."""


class TransportExchangeError(GitHubAppError):
    """Minting installation-scoped credentials failed."""


__all__ = [
    "ConfigurationError",
    "GitHubAppError",
    "InstallationLookupError",
    "SigningError",
    "TransportExchangeError",
]
