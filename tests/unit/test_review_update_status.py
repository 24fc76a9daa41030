"""Contains unit tests for the file update status check."""

from datetime import datetime, timezone
from typing import Any

import pytest

from review_tracker.github.models import IssueComment, ReviewRequest
from review_tracker.github.results import FailureKind, Ok, TrackerFailure
from review_tracker.review.update_status import (
    UpdateBaseline,
    UpdateState,
    UpdateStatus,
    check_update_status,
    extract_update_failure_message,
    fetch_update_baseline,
)

PUSHED_AT = datetime(2024, 5, 1, 10, tzinfo=timezone.utc)


def bot_comment(body: str, login: str = "github-actions") -> IssueComment:
    """Build an automation comment."""
    return IssueComment(body=body, user_login=login)


@pytest.mark.parametrize(
    "body,expected",
    [
        ("@alice, the lyric file failed validation\nDetails below", "the lyric file failed validation"),
        ("@alice，时间轴有误", "时间轴有误"),
        ("Update rejected", "Update rejected"),
        ("@alice,", "@alice,"),
        ("", None),
        (None, None),
        ("   \nsecond line", None),
    ],
)
def test_extract_update_failure_message(body: str | None, expected: str | None) -> None:
    """Test that the reason is the first line without its mention prefix."""
    assert extract_update_failure_message(body) == expected


@pytest.mark.asyncio
async def test_bot_comment_means_failure(tracker: Any) -> None:
    """Test that an automation comment rejects the update without reading the head."""
    tracker.list_request_comments.return_value = Ok([IssueComment(body="thanks", user_login="alice"), bot_comment("@alice, bad timing")])
    status = await check_update_status(tracker, "token", 7, "abc", PUSHED_AT)
    assert status == UpdateStatus(state=UpdateState.FAILURE, head_sha="abc", message="bad timing")
    tracker.list_request_comments.assert_awaited_once_with("token", 7, since=PUSHED_AT, per_page=100)
    tracker.get_review_request.assert_not_awaited()


@pytest.mark.asyncio
async def test_bot_login_is_case_insensitive(tracker: Any) -> None:
    """Test that the automation account is matched ignoring case."""
    tracker.list_request_comments.return_value = Ok([bot_comment("Rejected", login="GitHub-Actions")])
    status = await check_update_status(tracker, "token", 7, "abc", PUSHED_AT)
    assert status.state == UpdateState.FAILURE


@pytest.mark.asyncio
async def test_new_head_means_success(tracker: Any) -> None:
    """Test that a head revision different from the baseline accepts the update."""
    tracker.list_request_comments.return_value = Ok([])
    tracker.get_review_request.return_value = Ok(ReviewRequest(id=7, head_sha="def"))
    status = await check_update_status(tracker, "token", 7, "abc", PUSHED_AT)
    assert status == UpdateStatus(state=UpdateState.SUCCESS, head_sha="def")


@pytest.mark.asyncio
async def test_unchanged_head_is_pending(tracker: Any) -> None:
    """Test that an unchanged head keeps the check pending."""
    tracker.list_request_comments.return_value = Ok([])
    tracker.get_review_request.return_value = Ok(ReviewRequest(id=7, head_sha="abc"))
    status = await check_update_status(tracker, "token", 7, "abc", PUSHED_AT)
    assert status == UpdateStatus(state=UpdateState.PENDING, head_sha="abc")


@pytest.mark.asyncio
async def test_missing_baseline_adopts_current_head(tracker: Any) -> None:
    """Test that without a baseline the current head becomes the next baseline."""
    tracker.list_request_comments.return_value = Ok([])
    tracker.get_review_request.return_value = Ok(ReviewRequest(id=7, head_sha="abc"))
    status = await check_update_status(tracker, "token", 7, None, PUSHED_AT)
    assert status == UpdateStatus(state=UpdateState.PENDING, head_sha="abc")


@pytest.mark.asyncio
async def test_lookup_failures_stay_pending(tracker: Any) -> None:
    """Test that failed lookups keep the check pending and are reported."""
    comments_failure = TrackerFailure(kind=FailureKind.NETWORK_ERROR)
    request_failure = TrackerFailure(kind=FailureKind.REMOTE_ERROR, status_code=502)
    tracker.list_request_comments.return_value = comments_failure
    tracker.get_review_request.return_value = request_failure
    status = await check_update_status(tracker, "token", 7, "abc", PUSHED_AT)
    assert status.state == UpdateState.PENDING
    assert status.head_sha == "abc"
    assert status.failures == (comments_failure, request_failure)


@pytest.mark.asyncio
async def test_comment_failure_still_checks_head(tracker: Any) -> None:
    """Test that a failed comment listing does not hide a landed update."""
    tracker.list_request_comments.return_value = TrackerFailure(kind=FailureKind.NETWORK_ERROR)
    tracker.get_review_request.return_value = Ok(ReviewRequest(id=7, head_sha="def"))
    status = await check_update_status(tracker, "token", 7, "abc", PUSHED_AT)
    assert status.state == UpdateState.SUCCESS


@pytest.mark.asyncio
async def test_fetch_update_baseline(tracker: Any) -> None:
    """Test that the baseline records the head and falls back to a built URL."""
    tracker.get_review_request.return_value = Ok(ReviewRequest(id=7, head_sha="abc"))
    result = await fetch_update_baseline(tracker, "token", 7)
    assert result == Ok(UpdateBaseline(head_sha="abc", request_url="https://github.com/owner/repo/pull/7"))


@pytest.mark.asyncio
async def test_fetch_update_baseline_failure(tracker: Any) -> None:
    """Test that a failed lookup is passed through."""
    failure = TrackerFailure(kind=FailureKind.NOT_FOUND, status_code=404)
    tracker.get_review_request.return_value = failure
    assert await fetch_update_baseline(tracker, "token", 7) == failure
