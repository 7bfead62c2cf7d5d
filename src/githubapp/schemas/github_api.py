"""Pydantic models for the GitHub Apps REST responses we consume."""

from datetime import datetime

from pydantic import BaseModel, Field


class GitHubAccount(BaseModel):
    """GitHub user or organization."""

    login: str
    id: int
    type: str = "User"  # "User" or "Organization"


class GitHubApp(BaseModel):
    """The authenticated GitHub App (GET /app)."""

    id: int
    slug: str | None = None
    name: str
    owner: GitHubAccount | None = None
    permissions: dict[str, str] = Field(default_factory=dict)
    events: list[str] = Field(default_factory=list)
    installations_count: int | None = None


class InstallationRecord(BaseModel):
    """An installation of the app on an account."""

    id: int
    app_id: int | None = None
    account: GitHubAccount | None = None
    target_type: str | None = None
    repository_selection: str | None = None
    permissions: dict[str, str] = Field(default_factory=dict)
    suspended_at: datetime | None = None


class InstallationToken(BaseModel):
    """Response of POST /app/installations/{id}/access_tokens."""

    token: str
    expires_at: datetime
    permissions: dict[str, str] = Field(default_factory=dict)
    repository_selection: str | None = None
