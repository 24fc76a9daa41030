"""Verifies that a credential belongs to someone allowed to review."""

from dataclasses import dataclass, field
from enum import Enum

import structlog

from review_tracker.configuration.env import Settings
from review_tracker.github.abc import TrackerClientBase
from review_tracker.github.models import ReviewLabel
from review_tracker.github.results import FailureKind, TrackerFailure
from review_tracker.synchronize.labels import fetch_review_labels
from review_tracker.utils.github import credential_is_blank

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class AccessStatus(str, Enum):
    """Outcome of an access check."""

    MISSING_TOKEN = "missing-token"
    INVALID_TOKEN = "invalid-token"
    USER_ERROR = "user-error"
    USER_MISSING = "user-missing"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"
    NETWORK_ERROR = "network-error"


@dataclass(frozen=True)
class AccessCheck:
    """Result of ``verify_github_access``."""

    status: AccessStatus
    login: str | None = None
    labels: list[ReviewLabel] = field(default_factory=list)
    code: int | None = None


def _status_for_failure(failure: TrackerFailure) -> AccessCheck:
    if failure.kind == FailureKind.MISSING_CREDENTIAL:
        return AccessCheck(status=AccessStatus.MISSING_TOKEN)
    if failure.kind == FailureKind.INVALID_CREDENTIAL:
        return AccessCheck(status=AccessStatus.INVALID_TOKEN)
    if failure.kind == FailureKind.NETWORK_ERROR:
        return AccessCheck(status=AccessStatus.NETWORK_ERROR)
    return AccessCheck(status=AccessStatus.USER_ERROR, code=failure.status_code)


async def verify_github_access(
    tracker: TrackerClientBase,
    token: str,
    settings: Settings | None = None,
) -> AccessCheck:
    """Check that the credential's user owns or collaborates on the repository.

    Authorized results carry the repository labels; a label listing failure
    leaves them empty rather than failing the check.
    """
    if credential_is_blank(token):
        return AccessCheck(status=AccessStatus.MISSING_TOKEN)

    profile = await tracker.get_authenticated_user(token)
    if isinstance(profile, TrackerFailure):
        return _status_for_failure(profile)
    login = profile.value.login
    if not login:
        return AccessCheck(status=AccessStatus.USER_MISSING)

    is_owner = login.lower() == tracker.owner.lower()
    if not is_owner:
        collaborator = await tracker.check_collaborator(token, login)
        if isinstance(collaborator, TrackerFailure):
            if collaborator.kind == FailureKind.NETWORK_ERROR:
                return AccessCheck(status=AccessStatus.NETWORK_ERROR)
            logger.warning("Collaborator check failed", login=login, failure=collaborator.kind.value)
            return AccessCheck(status=AccessStatus.UNAUTHORIZED, login=login)
        if not collaborator.value:
            logger.info("User is not allowed to review", login=login)
            return AccessCheck(status=AccessStatus.UNAUTHORIZED, login=login)

    labels = await fetch_review_labels(tracker, token, settings=settings)
    logger.info("User is allowed to review", login=login, owner=is_owner)
    return AccessCheck(
        status=AccessStatus.AUTHORIZED,
        login=login,
        labels=labels.value if not isinstance(labels, TrackerFailure) else [],
    )
