"""Utility modules for shared functionality."""

from .constants import (
    DEFAULT_PENDING_LABEL_NAME,
    DEFAULT_REPO,
    PENDING_UPDATE_NOTIFICATION_PREFIX,
    SUPPORTED_REVIEW_EXTENSIONS,
)
from .github import credential_is_blank, split_repository_in_configuration
from .retry import retry_on_rate_limit

__all__ = [
    "DEFAULT_REPO",
    "DEFAULT_PENDING_LABEL_NAME",
    "PENDING_UPDATE_NOTIFICATION_PREFIX",
    "SUPPORTED_REVIEW_EXTENSIONS",
    "credential_is_blank",
    "split_repository_in_configuration",
    "retry_on_rate_limit",
]
