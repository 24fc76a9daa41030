"""Unit tests for the GitHubTrackerAdapter class and related GitHub operations."""

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from githubkit.exception import PrimaryRateLimitExceeded, RequestError, RequestFailed
from pytest import MonkeyPatch

from review_tracker.github.adapter import GitHubTrackerAdapter
from review_tracker.github.models import ReviewVerdict
from review_tracker.github.results import FailureKind, Ok, TrackerFailure


class DummyResponse:
    """A dummy response object to mock GitHub API responses."""

    def __init__(self, status_code: int = 200, payload: Any = None, headers: dict[str, str] | None = None, content: bytes = b"") -> None:
        """Initialize the dummy response with a status code and JSON payload."""
        self.status_code: int = status_code
        self.payload = payload
        self.headers = headers or {}
        self.content = content

    def json(self) -> Any:
        """Return the JSON payload."""
        return self.payload


def request_failed(status_code: int, message: str = "") -> RequestFailed:
    """Build a githubkit RequestFailed for a status code."""
    response = MagicMock(status_code=status_code)
    response.json.return_value = {"message": message}
    return RequestFailed(response)


@pytest.fixture
def client() -> MagicMock:
    """githubkit client double."""
    return MagicMock()


@pytest.fixture
def adapter(client: MagicMock) -> GitHubTrackerAdapter:
    """Adapter whose factory always hands out the client double."""
    return GitHubTrackerAdapter("owner", "repo", client_factory=lambda token: client)


@pytest.mark.asyncio
async def test_create_splits_repository() -> None:
    """Test that create parses the owner and repository name."""
    adapter = await GitHubTrackerAdapter.create("Steve-xmh/amll-ttml-db")
    assert adapter.owner == "Steve-xmh"
    assert adapter.repo_name == "amll-ttml-db"


@pytest.mark.asyncio
async def test_create_rejects_malformed_repository() -> None:
    """Test that create refuses a repository without an owner."""
    with pytest.raises(ValueError):
        await GitHubTrackerAdapter.create("amll-ttml-db")


@pytest.mark.asyncio
async def test_blank_token_makes_no_request() -> None:
    """Test that a blank credential never reaches the client factory."""
    factory = MagicMock()
    adapter = GitHubTrackerAdapter("owner", "repo", client_factory=factory)
    result = await adapter.get_review_request("   ", 1)
    assert isinstance(result, TrackerFailure)
    assert result.kind == FailureKind.MISSING_CREDENTIAL
    factory.assert_not_called()


@pytest.mark.asyncio
async def test_get_review_request(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that a pull request payload is parsed."""
    client.rest.pulls.async_get = AsyncMock(return_value=DummyResponse(payload={"number": 5, "title": "Song", "head": {"sha": "abc"}}))
    result = await adapter.get_review_request("token", 5)
    assert isinstance(result, Ok)
    assert result.value.id == 5
    assert result.value.head_sha == "abc"
    client.rest.pulls.async_get.assert_awaited_once_with(owner="owner", repo="repo", pull_number=5)


@pytest.mark.parametrize(
    "status_code,kind",
    [
        (401, FailureKind.INVALID_CREDENTIAL),
        (404, FailureKind.NOT_FOUND),
        (403, FailureKind.REMOTE_ERROR),
        (422, FailureKind.REMOTE_ERROR),
        (500, FailureKind.REMOTE_ERROR),
    ],
)
@pytest.mark.asyncio
async def test_http_failures_are_classified(adapter: GitHubTrackerAdapter, client: MagicMock, status_code: int, kind: FailureKind) -> None:
    """Test that non-2xx responses become typed failures carrying the status code."""
    client.rest.pulls.async_get = AsyncMock(side_effect=request_failed(status_code, "Nope"))
    result = await adapter.get_review_request("token", 5)
    assert result == TrackerFailure(kind=kind, status_code=status_code, message="Nope")


@pytest.mark.asyncio
async def test_transport_failure_is_network_error(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that a transport error is reported without a status code."""
    client.rest.pulls.async_get = AsyncMock(side_effect=RequestError("connection reset"))
    result = await adapter.get_review_request("token", 5)
    assert isinstance(result, TrackerFailure)
    assert result.kind == FailureKind.NETWORK_ERROR
    assert result.status_code is None


@pytest.mark.asyncio
async def test_malformed_payload_is_remote_error(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that a payload that does not parse is reported with the response status."""
    client.rest.pulls.async_get = AsyncMock(return_value=DummyResponse(payload={"title": "no number"}))
    result = await adapter.get_review_request("token", 5)
    assert isinstance(result, TrackerFailure)
    assert result.kind == FailureKind.REMOTE_ERROR
    assert result.status_code == 200


@pytest.mark.asyncio
async def test_rate_limit_is_retried(adapter: GitHubTrackerAdapter, client: MagicMock, monkeypatch: MonkeyPatch) -> None:
    """Test that a rate limited request is retried after waiting."""
    sleep = AsyncMock()
    monkeypatch.setattr("review_tracker.utils.retry.asyncio.sleep", sleep)
    rate_limited = PrimaryRateLimitExceeded(MagicMock(status_code=403), timedelta(seconds=2))
    client.rest.users.async_get_authenticated = AsyncMock(side_effect=[rate_limited, DummyResponse(payload={"login": "me", "id": 1})])
    result = await adapter.get_authenticated_user("token")
    assert isinstance(result, Ok)
    assert result.value.login == "me"
    sleep.assert_awaited_once_with(2.0)


@pytest.mark.asyncio
async def test_search_review_requests(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that search arguments are forwarded and the page is parsed."""
    payload = {"total_count": 1, "incomplete_results": False, "items": [{"number": 3, "title": "Song"}]}
    client.rest.search.async_issues_and_pull_requests = AsyncMock(return_value=DummyResponse(payload=payload))
    result = await adapter.search_review_requests("token", "repo:owner/repo is:pr", page=2, per_page=50)
    assert isinstance(result, Ok)
    assert result.value.total_count == 1
    assert result.value.items[0].id == 3
    client.rest.search.async_issues_and_pull_requests.assert_awaited_once_with(
        q="repo:owner/repo is:pr", sort="updated", order="desc", per_page=50, page=2
    )


@pytest.mark.asyncio
async def test_list_request_comments_since(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that comments are listed since a time and parsed with their authors."""
    since = datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    client.rest.issues.async_list_comments = AsyncMock(
        return_value=DummyResponse(payload=[{"body": "done", "user": {"login": "github-actions"}, "created_at": "2024-05-01T10:05:00Z"}])
    )
    result = await adapter.list_request_comments("token", 9, since=since)
    assert isinstance(result, Ok)
    assert result.value[0].user_login == "github-actions"
    client.rest.issues.async_list_comments.assert_awaited_once_with(owner="owner", repo="repo", issue_number=9, per_page=100, since=since)


@pytest.mark.asyncio
async def test_list_request_comments_without_since(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that ``since`` is not sent when absent."""
    client.rest.issues.async_list_comments = AsyncMock(return_value=DummyResponse(payload=[]))
    assert await adapter.list_request_comments("token", 9) == Ok([])
    client.rest.issues.async_list_comments.assert_awaited_once_with(owner="owner", repo="repo", issue_number=9, per_page=100)


@pytest.mark.asyncio
async def test_list_request_events(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that events are parsed with their label names."""
    payload = [
        {"event": "labeled", "label": {"name": "待更新"}, "created_at": "2024-05-01T10:00:00Z"},
        {"event": "committed"},
    ]
    client.rest.issues.async_list_events = AsyncMock(return_value=DummyResponse(payload=payload))
    result = await adapter.list_request_events("token", 9, page=3, per_page=20)
    assert isinstance(result, Ok)
    assert result.value[0].label_name == "待更新"
    assert result.value[1].event == "committed"
    client.rest.issues.async_list_events.assert_awaited_once_with(owner="owner", repo="repo", issue_number=9, per_page=20, page=3)


@pytest.mark.asyncio
async def test_add_label_returns_status(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that adding a label reports the response status."""
    client.rest.issues.async_add_labels = AsyncMock(return_value=DummyResponse(payload=[]))
    assert await adapter.add_label("token", 9, "待更新") == Ok(200)
    client.rest.issues.async_add_labels.assert_awaited_once_with(owner="owner", repo="repo", issue_number=9, labels=["待更新"])


@pytest.mark.asyncio
async def test_post_review_omits_empty_body(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that an empty review body is not sent."""
    client.rest.pulls.async_create_review = AsyncMock(return_value=DummyResponse())
    assert await adapter.post_review("token", 9, ReviewVerdict.APPROVE) == Ok(200)
    client.rest.pulls.async_create_review.assert_awaited_once_with(owner="owner", repo="repo", pull_number=9, event="APPROVE")


@pytest.mark.asyncio
async def test_post_review_with_body(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that a review body is sent with the verdict."""
    client.rest.pulls.async_create_review = AsyncMock(return_value=DummyResponse())
    await adapter.post_review("token", 9, ReviewVerdict.REQUEST_CHANGES, "Fix timing")
    client.rest.pulls.async_create_review.assert_awaited_once_with(
        owner="owner", repo="repo", pull_number=9, event="REQUEST_CHANGES", body="Fix timing"
    )


@pytest.mark.asyncio
async def test_fetch_raw_content(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that raw content is returned as bytes."""
    client.arequest = AsyncMock(return_value=DummyResponse(content=b"[00:01.00]la"))
    assert await adapter.fetch_raw_content("token", "https://example.com/raw/song.lrc") == Ok(b"[00:01.00]la")
    client.arequest.assert_awaited_once_with("GET", "https://example.com/raw/song.lrc")


@pytest.mark.asyncio
async def test_latest_revision_timestamp(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that the head commit's committer date is returned."""
    client.rest.pulls.async_get = AsyncMock(return_value=DummyResponse(payload={"number": 5, "head": {"sha": "abc"}}))
    client.rest.repos.async_get_commit = AsyncMock(
        return_value=DummyResponse(payload={"sha": "abc", "commit": {"committer": {"date": "2024-05-02T08:30:00Z"}}})
    )
    result = await adapter.get_latest_revision_timestamp("token", 5)
    assert result == Ok(datetime(2024, 5, 2, 8, 30, tzinfo=timezone.utc))
    client.rest.repos.async_get_commit.assert_awaited_once_with(owner="owner", repo="repo", ref="abc")


@pytest.mark.asyncio
async def test_latest_revision_timestamp_without_head(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that a request without a head revision has no timestamp."""
    client.rest.pulls.async_get = AsyncMock(return_value=DummyResponse(payload={"number": 5}))
    client.rest.repos.async_get_commit = AsyncMock()
    result = await adapter.get_latest_revision_timestamp("token", 5)
    assert isinstance(result, TrackerFailure)
    assert result.kind == FailureKind.NO_DATA
    client.rest.repos.async_get_commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_commit_without_date(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that an undated commit has no timestamp."""
    client.rest.repos.async_get_commit = AsyncMock(return_value=DummyResponse(payload={"sha": "abc", "commit": {}}))
    result = await adapter.get_commit_timestamp("token", "abc")
    assert isinstance(result, TrackerFailure)
    assert result.kind == FailureKind.NO_DATA


@pytest.mark.parametrize(
    "outcome,expected",
    [
        (DummyResponse(status_code=204), Ok(True)),
        (request_failed(404), Ok(False)),
    ],
)
@pytest.mark.asyncio
async def test_check_collaborator(adapter: GitHubTrackerAdapter, client: MagicMock, outcome: Any, expected: Ok[bool]) -> None:
    """Test that GitHub's 204 and 404 answers become booleans."""
    if isinstance(outcome, Exception):
        client.rest.repos.async_check_collaborator = AsyncMock(side_effect=outcome)
    else:
        client.rest.repos.async_check_collaborator = AsyncMock(return_value=outcome)
    assert await adapter.check_collaborator("token", "reviewer") == expected


@pytest.mark.asyncio
async def test_check_collaborator_other_failure(adapter: GitHubTrackerAdapter, client: MagicMock) -> None:
    """Test that other collaborator check failures are passed through."""
    client.rest.repos.async_check_collaborator = AsyncMock(side_effect=request_failed(403))
    result = await adapter.check_collaborator("token", "reviewer")
    assert isinstance(result, TrackerFailure)
    assert result.kind == FailureKind.REMOTE_ERROR
    assert result.status_code == 403
