"""Checks whether a file update pushed to a review request has landed.

A submitter's update is picked up by the repository's automation, which
either pushes a new head revision or replies with a comment explaining why
the update was rejected. ``check_update_status`` inspects both once and
reports what it saw; callers decide when to check again.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import structlog

from review_tracker.github.abc import TrackerClientBase
from review_tracker.github.models import IssueComment
from review_tracker.github.results import TrackerFailure, TrackerResult, map_result
from review_tracker.utils.constants import DEFAULT_REQUEST_COMMENTS_PER_PAGE, GITHUB_WEB_URL, UPDATE_BOT_LOGIN

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# Drops a leading "<prefix>, " (ASCII or full-width comma) from the bot's first line.
_BOT_PREFIX = re.compile(r"^[^，,]+[，,]\s*")


class UpdateState(str, Enum):
    """Outcome of one update status check."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"


@dataclass(frozen=True)
class UpdateBaseline:
    """Head revision and web address of a review request before an update is pushed."""

    head_sha: str | None
    request_url: str


@dataclass(frozen=True)
class UpdateStatus:
    """Result of ``check_update_status``.

    ``head_sha`` is the baseline to pass to the next check. It only differs
    from the given baseline when no baseline was known and the request now
    has a head revision.
    """

    state: UpdateState
    head_sha: str | None = None
    message: str | None = None
    failures: tuple[TrackerFailure, ...] = ()


def build_request_url(owner: str, repo_name: str, request_id: int) -> str:
    """Web address of a review request."""
    return f"{GITHUB_WEB_URL}/{owner}/{repo_name}/pull/{request_id}"


def extract_update_failure_message(body: str | None) -> str | None:
    """Reason given by the first line of an automation comment, if any."""
    lines = (body or "").splitlines()
    first_line = lines[0].strip() if lines else ""
    if not first_line:
        return None
    return _BOT_PREFIX.sub("", first_line) or first_line


def find_update_failure(comments: list[IssueComment]) -> str | None:
    """Failure message of the first automation comment."""
    for comment in comments:
        if (comment.user_login or "").lower() == UPDATE_BOT_LOGIN:
            return extract_update_failure_message(comment.body)
    return None


async def fetch_update_baseline(tracker: TrackerClientBase, token: str, request_id: int) -> TrackerResult[UpdateBaseline]:
    """Record the head revision of a review request before pushing an update."""
    request = await tracker.get_review_request(token, request_id)
    return map_result(
        request,
        lambda value: UpdateBaseline(
            head_sha=value.head_sha,
            request_url=value.html_url or build_request_url(tracker.owner, tracker.repo_name, request_id),
        ),
    )


async def check_update_status(
    tracker: TrackerClientBase,
    token: str,
    request_id: int,
    base_head_sha: str | None,
    since: datetime | None,
) -> UpdateStatus:
    """Check once whether an update pushed at ``since`` was accepted or rejected.

    A comment from the automation account posted since ``since`` means the
    update was rejected, and its first line is the reason. Otherwise a head
    revision different from ``base_head_sha`` means it was accepted. Lookup
    failures leave the status pending and are reported in ``failures``.
    """
    failures: list[TrackerFailure] = []

    comments = await tracker.list_request_comments(token, request_id, since=since, per_page=DEFAULT_REQUEST_COMMENTS_PER_PAGE)
    if isinstance(comments, TrackerFailure):
        logger.warning("Could not list review request comments", request_id=request_id, failure=comments.kind.value)
        failures.append(comments)
    else:
        message = find_update_failure(comments.value)
        if message:
            logger.info("File update was rejected", request_id=request_id, message=message)
            return UpdateStatus(state=UpdateState.FAILURE, head_sha=base_head_sha, message=message)

    request = await tracker.get_review_request(token, request_id)
    if isinstance(request, TrackerFailure):
        logger.warning("Could not read review request head", request_id=request_id, failure=request.kind.value)
        failures.append(request)
        return UpdateStatus(state=UpdateState.PENDING, head_sha=base_head_sha, failures=tuple(failures))

    head_sha = request.value.head_sha
    if head_sha and base_head_sha and head_sha != base_head_sha:
        logger.info("File update landed", request_id=request_id, head_sha=head_sha)
        return UpdateStatus(state=UpdateState.SUCCESS, head_sha=head_sha)
    return UpdateStatus(state=UpdateState.PENDING, head_sha=base_head_sha or head_sha, failures=tuple(failures))
