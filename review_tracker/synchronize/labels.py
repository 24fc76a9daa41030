"""Contains synchronization logic for review request labels."""

from typing import Callable, Sequence

import structlog

from review_tracker.configuration.env import Settings
from review_tracker.configuration.env import settings as default_settings
from review_tracker.github.abc import TrackerClientBase
from review_tracker.github.models import ReviewLabel, ReviewRequest
from review_tracker.github.results import TrackerFailure, TrackerResult, map_result
from review_tracker.utils.github import credential_is_blank

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def normalize_label_name(name: str) -> str:
    """Key used to compare label names."""
    return name.strip().lower()


def has_pending_label(labels: Sequence[ReviewLabel], label_name: str) -> bool:
    """Whether any label matches ``label_name``, ignoring case and surrounding whitespace."""
    wanted = normalize_label_name(label_name)
    return any(normalize_label_name(label.name) == wanted for label in labels)


async def refresh_pending_labels(
    tracker: TrackerClientBase,
    token: str,
    requests: Sequence[ReviewRequest],
    has_pending: Callable[[Sequence[ReviewLabel]], bool] | None = None,
    settings: Settings | None = None,
) -> list[ReviewRequest]:
    """Re-fetch the labels of every review request that carries the pending label.

    Requests without the pending label are returned as they are, without a
    network call. A request whose labels cannot be fetched keeps its cached
    labels and the refresh moves on to the next one.

    Returns:
        A new list in the same order as ``requests``
    """
    settings = settings or default_settings
    label_name = settings.PENDING_LABEL_NAME
    is_pending = has_pending or (lambda labels: has_pending_label(labels, label_name))

    updated = list(requests)
    if credential_is_blank(token):
        return updated

    for index, request in enumerate(requests):
        if not is_pending(request.labels):
            continue
        result = await tracker.list_request_labels(token, request.id, per_page=settings.LABELS_PER_PAGE)
        if isinstance(result, TrackerFailure):
            logger.warning("Keeping cached labels after failed refresh", request_id=request.id, failure=result.kind.value)
            continue
        updated[index] = request.model_copy(update={"labels": result.value})
        logger.debug("Refreshed review request labels", request_id=request.id, label_count=len(result.value))
    return updated


async def fetch_review_labels(
    tracker: TrackerClientBase,
    token: str,
    settings: Settings | None = None,
) -> TrackerResult[list[ReviewLabel]]:
    """List the repository's labels sorted by name."""
    settings = settings or default_settings
    result = await tracker.list_repository_labels(token, per_page=settings.LABELS_PER_PAGE)
    return map_result(result, lambda labels: sorted(labels, key=lambda label: label.name))


def prune_hidden_labels(hidden: Sequence[str], labels: Sequence[ReviewLabel]) -> list[str]:
    """Drop hidden label names that no longer exist on the repository."""
    known = {normalize_label_name(label.name) for label in labels}
    return [name for name in hidden if normalize_label_name(name) in known]
