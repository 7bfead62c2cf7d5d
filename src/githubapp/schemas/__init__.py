"""Pydantic schemas for GitHub API payloads."""

from .github_api import GitHubAccount, GitHubApp, InstallationRecord, InstallationToken

__all__ = [
    "GitHubAccount",
    "GitHubApp",
    "InstallationRecord",
    "InstallationToken",
]
