"""Detects review feedback that predates the submitter's latest update."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import partial

import structlog

from review_tracker.configuration.env import Settings
from review_tracker.configuration.env import settings as default_settings
from review_tracker.github.abc import TrackerClientBase
from review_tracker.github.models import LabelEvent
from review_tracker.github.results import Ok, TrackerFailure, TrackerResult, no_data
from review_tracker.synchronize.labels import normalize_label_name
from review_tracker.synchronize.pagination import walk_pages

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StalenessReport:
    """Outcome of a staleness check and the two lookups behind it."""

    request_id: int
    stale: bool
    label_time: TrackerResult[datetime]
    revision_time: TrackerResult[datetime]


def is_pending_label_event(event: LabelEvent, label_name: str) -> bool:
    """Whether an event records the pending label being applied."""
    if event.event != "labeled" or event.created_at is None:
        return False
    return normalize_label_name(event.label_name or "") == normalize_label_name(label_name)


def is_stale(
    label_time: TrackerResult[datetime],
    revision_time: TrackerResult[datetime],
    tolerance: timedelta = timedelta(0),
) -> bool:
    """Stale iff both timestamps resolved and the revision is strictly newer than the label."""
    if not isinstance(label_time, Ok) or not isinstance(revision_time, Ok):
        return False
    return revision_time.value > label_time.value + tolerance


async def fetch_pending_label_time(
    tracker: TrackerClientBase,
    token: str,
    request_id: int,
    settings: Settings | None = None,
) -> TrackerResult[datetime]:
    """Find when the pending label was applied to a review request.

    Returns ``no-data`` when the label was never applied within the page cap,
    and the walk's failure when a page could not be fetched.
    """
    settings = settings or default_settings
    label_name = settings.PENDING_LABEL_NAME

    def matches(event: LabelEvent) -> bool:
        return is_pending_label_event(event, label_name)

    events = await walk_pages(
        partial(tracker.list_request_events, token, request_id, per_page=settings.LABEL_EVENTS_PER_PAGE),
        per_page=settings.LABEL_EVENTS_PER_PAGE,
        max_pages=settings.LABEL_EVENTS_MAX_PAGES,
        stop_when=matches,
    )
    if isinstance(events, TrackerFailure):
        return events
    for event in events.value:
        if matches(event) and event.created_at is not None:
            return Ok(event.created_at)
    return no_data(f"Label '{label_name}' was never applied to review request {request_id}")


async def fetch_latest_revision_time(tracker: TrackerClientBase, token: str, request_id: int) -> TrackerResult[datetime]:
    """Look up the timestamp of the review request's head revision."""
    return await tracker.get_latest_revision_timestamp(token, request_id)


async def detect_staleness(
    tracker: TrackerClientBase,
    token: str,
    request_id: int,
    settings: Settings | None = None,
) -> StalenessReport:
    """Check whether the submitter updated a review request after it was labelled.

    Both lookups run concurrently. Either one failing or finding nothing makes
    the request not stale, and the report keeps each outcome so callers can
    tell a failed lookup from a label that was never applied.
    """
    settings = settings or default_settings
    label_time, revision_time = await asyncio.gather(
        fetch_pending_label_time(tracker, token, request_id, settings=settings),
        fetch_latest_revision_time(tracker, token, request_id),
    )
    stale = is_stale(label_time, revision_time, tolerance=settings.staleness_tolerance)
    logger.info(
        "Checked review request staleness",
        request_id=request_id,
        stale=stale,
        label_time=label_time.value.isoformat() if isinstance(label_time, Ok) else label_time.kind.value,
        revision_time=revision_time.value.isoformat() if isinstance(revision_time, Ok) else revision_time.kind.value,
    )
    return StalenessReport(request_id=request_id, stale=stale, label_time=label_time, revision_time=revision_time)
