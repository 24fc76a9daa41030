"""Contains reconciliation logic for pending update notifications."""

from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Iterable, Literal, Protocol

import structlog
from pydantic import BaseModel

from review_tracker.configuration.env import Settings
from review_tracker.configuration.env import settings as default_settings
from review_tracker.github.abc import TrackerClientBase
from review_tracker.github.models import ReviewRequest
from review_tracker.github.results import Ok, TrackerFailure, TrackerResult, map_result, missing_credential
from review_tracker.synchronize.pagination import walk_pages
from review_tracker.utils.constants import (
    NOTIFICATION_SOURCE_GITHUB,
    OPEN_REVIEW_UPDATE_ACTION,
    PENDING_UPDATE_NOTIFICATION_PREFIX,
)
from review_tracker.utils.github import credential_is_blank

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

NotificationLevel = Literal["info", "warning", "error", "success"]


class NotificationAction(BaseModel):
    """Action attached to a pending update notification."""

    type: str = OPEN_REVIEW_UPDATE_ACTION
    request_id: int
    title: str


class NotificationRecord(BaseModel):
    """Notification issued to the caller's notification store."""

    id: str
    title: str
    description: str | None = None
    level: NotificationLevel = "info"
    source: str | None = None
    pinned: bool = False
    dismissible: bool = True
    action: NotificationAction | None = None


class NotificationStore(Protocol):
    """Caller-owned notification storage."""

    def upsert(self, record: NotificationRecord) -> None:
        """Insert a record, or overwrite the record with the same id."""
        ...

    def remove(self, notification_id: str) -> None:
        """Remove the record with this id if present."""
        ...


class InMemoryNotificationStore:
    """Notification store backed by a dict, keyed by notification id."""

    def __init__(self) -> None:
        self.records: dict[str, NotificationRecord] = {}

    def upsert(self, record: NotificationRecord) -> None:
        self.records[record.id] = record

    def remove(self, notification_id: str) -> None:
        self.records.pop(notification_id, None)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self.records)


@dataclass(frozen=True)
class ReconciliationPlan:
    """Commands that bring a notification store in line with the pending requests."""

    upserts: list[NotificationRecord] = field(default_factory=list)
    removals: list[str] = field(default_factory=list)
    next_ids: frozenset[str] = frozenset()


def build_pending_update_notification_id(request_id: int) -> str:
    """Derive the notification id of a pending review request."""
    return f"{PENDING_UPDATE_NOTIFICATION_PREFIX}{request_id}"


def build_pending_update_notification(
    request: ReviewRequest,
    notification_id: str,
    label_name: str,
) -> NotificationRecord:
    """Build the notification shown for a review request waiting on its submitter."""
    return NotificationRecord(
        id=notification_id,
        title=f"{label_name} PR #{request.id}",
        description=request.title,
        level="info",
        source=NOTIFICATION_SOURCE_GITHUB,
        pinned=True,
        dismissible=True,
        action=NotificationAction(request_id=request.id, title=request.title),
    )


def build_pending_update_query(owner: str, repo_name: str, label_name: str, login: str) -> str:
    """Search query for open, labelled review requests that mention ``login``."""
    return f'repo:{owner}/{repo_name} is:pr is:open label:"{label_name}" mentions:{login}'


def plan_notice_reconciliation(
    pending: Iterable[ReviewRequest],
    previous_ids: Iterable[str],
    label_name: str,
    id_fn: Callable[[int], str] = build_pending_update_notification_id,
) -> ReconciliationPlan:
    """Compute the upserts and removals for one reconciliation cycle.

    Every pending request gets an upsert, keyed by ``id_fn(request.id)``. Ids
    from the previous baseline that are no longer pending are removed, in
    sorted order so identical inputs always yield identical command sequences.
    """
    upserts: list[NotificationRecord] = []
    next_ids: set[str] = set()
    for request in pending:
        notification_id = id_fn(request.id)
        if notification_id in next_ids:
            continue
        next_ids.add(notification_id)
        upserts.append(build_pending_update_notification(request, notification_id, label_name))
    removals = sorted(set(previous_ids) - next_ids)
    return ReconciliationPlan(upserts=upserts, removals=removals, next_ids=frozenset(next_ids))


def apply_reconciliation_plan(plan: ReconciliationPlan, store: NotificationStore) -> None:
    """Apply every upsert, then every removal."""
    for record in plan.upserts:
        store.upsert(record)
    for notification_id in plan.removals:
        store.remove(notification_id)


async def fetch_pending_update_requests(
    tracker: TrackerClientBase,
    token: str,
    login: str,
    settings: Settings | None = None,
) -> TrackerResult[list[ReviewRequest]]:
    """Find every open review request carrying the pending label that mentions ``login``.

    A blank credential is a ``missing-credential`` failure. A blank login
    mentions nobody, so it yields an empty listing without a network call.
    """
    settings = settings or default_settings
    if credential_is_blank(token):
        return missing_credential()
    trimmed_login = login.strip()
    if not trimmed_login:
        logger.info("No login provided, treating pending review requests as empty")
        return Ok([])
    query = build_pending_update_query(tracker.owner, tracker.repo_name, settings.PENDING_LABEL_NAME, trimmed_login)
    search = partial(tracker.search_review_requests, token, query, per_page=settings.PENDING_SEARCH_PER_PAGE)

    async def fetch_page(page: int) -> TrackerResult[list[ReviewRequest]]:
        return map_result(await search(page), lambda search_page: search_page.items)

    return await walk_pages(
        fetch_page,
        per_page=settings.PENDING_SEARCH_PER_PAGE,
        max_pages=settings.PENDING_SEARCH_MAX_PAGES,
    )


async def sync_pending_update_review_notices(
    tracker: TrackerClientBase,
    token: str,
    login: str,
    previous_ids: Iterable[str],
    store: NotificationStore,
    settings: Settings | None = None,
) -> TrackerResult[ReconciliationPlan]:
    """Reconcile pending update notifications with the tracker.

    On success the plan has been applied to ``store`` and ``plan.next_ids`` is
    the baseline the caller must pass in on the next cycle. On failure the
    store is left untouched and the caller keeps its previous baseline.
    """
    settings = settings or default_settings
    pending = await fetch_pending_update_requests(tracker, token, login, settings=settings)
    if isinstance(pending, TrackerFailure):
        logger.warning(
            "Could not load pending review requests, keeping notifications unchanged",
            failure=pending.kind.value,
            status_code=pending.status_code,
        )
        return pending
    plan = plan_notice_reconciliation(pending.value, previous_ids, settings.PENDING_LABEL_NAME)
    apply_reconciliation_plan(plan, store)
    logger.info(
        "Reconciled pending update notifications",
        pending_count=len(plan.next_ids),
        upserted=len(plan.upserts),
        removed=len(plan.removals),
    )
    return Ok(plan)
