"""Pydantic Settings model for application configuration."""

from datetime import timedelta

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from review_tracker.utils.constants import (
    DEFAULT_LABEL_EVENTS_MAX_PAGES,
    DEFAULT_LABEL_EVENTS_PER_PAGE,
    DEFAULT_LABELS_PER_PAGE,
    DEFAULT_PENDING_LABEL_NAME,
    DEFAULT_PENDING_SEARCH_MAX_PAGES,
    DEFAULT_PENDING_SEARCH_PER_PAGE,
    DEFAULT_REPO,
    DEFAULT_REQUEST_FILES_PER_PAGE,
)


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    REPO: str = DEFAULT_REPO
    REQUEST_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # Identity settings
    GITHUB_PAT_TOKEN: str | None = None
    GITHUB_LOGIN: str | None = None

    # Review workflow settings
    PENDING_LABEL_NAME: str = Field(default=DEFAULT_PENDING_LABEL_NAME, min_length=1)
    STALENESS_TOLERANCE_SECONDS: float = Field(default=0.0, ge=0)

    # Pagination bounds
    PENDING_SEARCH_PER_PAGE: int = Field(default=DEFAULT_PENDING_SEARCH_PER_PAGE, ge=1, le=100)
    PENDING_SEARCH_MAX_PAGES: int = Field(default=DEFAULT_PENDING_SEARCH_MAX_PAGES, ge=1)
    LABEL_EVENTS_PER_PAGE: int = Field(default=DEFAULT_LABEL_EVENTS_PER_PAGE, ge=1, le=100)
    LABEL_EVENTS_MAX_PAGES: int = Field(default=DEFAULT_LABEL_EVENTS_MAX_PAGES, ge=1)
    LABELS_PER_PAGE: int = Field(default=DEFAULT_LABELS_PER_PAGE, ge=1, le=100)
    REQUEST_FILES_PER_PAGE: int = Field(default=DEFAULT_REQUEST_FILES_PER_PAGE, ge=1, le=100)

    @property
    def staleness_tolerance(self) -> timedelta:
        """Clock skew allowed between a label event and a later commit."""
        return timedelta(seconds=self.STALENESS_TOLERANCE_SECONDS)


settings = Settings()
