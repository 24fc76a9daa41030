"""Review tracker client adapter for the githubkit library."""

from datetime import datetime
from typing import Any, Awaitable, Callable, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import RequestError, RequestFailed, RequestTimeout
from pydantic import TypeAdapter, ValidationError

from review_tracker.github.abc import TrackerClientBase
from review_tracker.github.client import GitHubClient, GitHubClientFactory, make_github_client_factory
from review_tracker.github.models import (
    Commit,
    FileCandidate,
    IssueComment,
    LabelEvent,
    ReviewLabel,
    ReviewRequest,
    ReviewVerdict,
    SearchPage,
    UserProfile,
)
from review_tracker.github.results import FailureKind, Ok, TrackerFailure, TrackerResult, missing_credential, no_data
from review_tracker.utils.github import credential_is_blank, split_repository_in_configuration
from review_tracker.utils.retry import retry_on_rate_limit

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")

RequestFunc = Callable[[GitHubClient], Awaitable[Response[Any]]]

_file_candidates = TypeAdapter(list[FileCandidate])
_issue_comments = TypeAdapter(list[IssueComment])
_label_events = TypeAdapter(list[LabelEvent])
_review_labels = TypeAdapter(list[ReviewLabel])


def failure_from_request_failed(operation: str, exc: RequestFailed) -> TrackerFailure:
    """Translate a non-2xx githubkit response into a typed failure."""
    status_code = exc.response.status_code
    try:
        message = exc.response.json().get("message", "")
    except Exception:
        message = ""
    if status_code == 401:
        kind = FailureKind.INVALID_CREDENTIAL
    elif status_code == 404:
        kind = FailureKind.NOT_FOUND
    else:
        kind = FailureKind.REMOTE_ERROR
    logger.warning(
        "GitHub request failed",
        operation=operation,
        status_code=status_code,
        failure=kind.value,
        message=message,
    )
    return TrackerFailure(kind=kind, status_code=status_code, message=message)


class GitHubTrackerAdapter(TrackerClientBase):
    """Review tracker client adapter for the githubkit library."""

    def __init__(self, owner: str, repo_name: str, client_factory: GitHubClientFactory) -> None:
        """Initialize the adapter with a factory that builds a githubkit client per credential."""
        self.owner = owner
        self.repo_name = repo_name
        self.client_factory = client_factory

    @classmethod
    async def create(
        cls,
        repo: str,
        github_api_url: str = "https://api.github.com",
        timeout: float | None = None,
    ) -> Self:
        """Create a new tracker adapter.

        Args:
            repo: Repository in 'owner/repo' format
            github_api_url: GitHub API URL (defaults to https://api.github.com)
            timeout: Transport timeout in seconds for every request

        Returns:
            Configured GitHubTrackerAdapter instance

        Raises:
            ValueError: If the repository is not in 'owner/repo' format
        """
        owner, repo_name = await split_repository_in_configuration(repo=repo)
        logger.info(
            "Creating tracker client for GitHub instance and repository",
            github_api_url=github_api_url,
            owner=owner,
            repo_name=repo_name,
        )
        return cls(owner, repo_name, make_github_client_factory(github_api_url, timeout=timeout))

    def _omit_null_parameters(self, **kwargs: Any) -> dict[str, Any]:
        """Omit parameters that are None."""
        return {k: v for k, v in kwargs.items() if v is not None}

    @retry_on_rate_limit()
    async def _send(self, client: GitHubClient, request: RequestFunc) -> Response[Any]:
        return await request(client)

    async def _execute(
        self,
        token: str,
        operation: str,
        request: RequestFunc,
        parse: Callable[[Response[Any]], T],
    ) -> TrackerResult[T]:
        """Run one request and turn its outcome into a ``TrackerResult``."""
        if credential_is_blank(token):
            logger.warning("Skipping GitHub request without a credential", operation=operation)
            return missing_credential()
        client = self.client_factory(token)
        try:
            response = await self._send(client, request)
        except RequestFailed as exc:
            return failure_from_request_failed(operation, exc)
        except (RequestTimeout, RequestError) as exc:
            logger.warning(
                "GitHub request could not be completed",
                operation=operation,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return TrackerFailure(kind=FailureKind.NETWORK_ERROR, message=str(exc))
        try:
            return Ok(parse(response))
        except (ValidationError, ValueError) as exc:
            logger.warning(
                "GitHub returned a malformed payload",
                operation=operation,
                status_code=response.status_code,
                error=str(exc),
            )
            return TrackerFailure(kind=FailureKind.REMOTE_ERROR, status_code=response.status_code, message="Malformed response payload")

    # Review request lookups
    async def search_review_requests(
        self,
        token: str,
        query: str,
        page: int,
        per_page: int,
        sort: str = "updated",
        order: str = "desc",
    ) -> TrackerResult[SearchPage]:
        """Search issues and pull requests."""
        logger.debug("Searching review requests", query=query, page=page, per_page=per_page)
        return await self._execute(
            token,
            "search_review_requests",
            lambda client: client.rest.search.async_issues_and_pull_requests(q=query, sort=sort, order=order, per_page=per_page, page=page),
            lambda response: SearchPage.model_validate(response.json()),
        )

    async def get_review_request(self, token: str, request_id: int) -> TrackerResult[ReviewRequest]:
        """Get a single review request."""
        return await self._execute(
            token,
            "get_review_request",
            lambda client: client.rest.pulls.async_get(owner=self.owner, repo=self.repo_name, pull_number=request_id),
            lambda response: ReviewRequest.model_validate(response.json()),
        )

    async def list_request_files(self, token: str, request_id: int, per_page: int = 100) -> TrackerResult[list[FileCandidate]]:
        """List files changed by a review request."""
        return await self._execute(
            token,
            "list_request_files",
            lambda client: client.rest.pulls.async_list_files(owner=self.owner, repo=self.repo_name, pull_number=request_id, per_page=per_page),
            lambda response: _file_candidates.validate_python(response.json()),
        )

    async def list_request_comments(
        self,
        token: str,
        request_id: int,
        since: datetime | None = None,
        per_page: int = 100,
    ) -> TrackerResult[list[IssueComment]]:
        """List conversation comments on a review request, omitting ``since`` when not given."""
        params = self._omit_null_parameters(since=since)
        return await self._execute(
            token,
            "list_request_comments",
            lambda client: client.rest.issues.async_list_comments(
                owner=self.owner,
                repo=self.repo_name,
                issue_number=request_id,
                per_page=per_page,
                **params,
            ),
            lambda response: _issue_comments.validate_python(response.json()),
        )

    async def list_request_events(self, token: str, request_id: int, page: int, per_page: int) -> TrackerResult[list[LabelEvent]]:
        """List one page of a review request's event history."""
        return await self._execute(
            token,
            "list_request_events",
            lambda client: client.rest.issues.async_list_events(
                owner=self.owner,
                repo=self.repo_name,
                issue_number=request_id,
                per_page=per_page,
                page=page,
            ),
            lambda response: _label_events.validate_python(response.json()),
        )

    # Labels
    async def list_request_labels(self, token: str, request_id: int, per_page: int = 100) -> TrackerResult[list[ReviewLabel]]:
        """List labels currently on a review request."""
        return await self._execute(
            token,
            "list_request_labels",
            lambda client: client.rest.issues.async_list_labels_on_issue(
                owner=self.owner,
                repo=self.repo_name,
                issue_number=request_id,
                per_page=per_page,
            ),
            lambda response: _review_labels.validate_python(response.json()),
        )

    async def list_repository_labels(self, token: str, per_page: int = 100) -> TrackerResult[list[ReviewLabel]]:
        """List labels defined on the repository."""
        return await self._execute(
            token,
            "list_repository_labels",
            lambda client: client.rest.issues.async_list_labels_for_repo(owner=self.owner, repo=self.repo_name, per_page=per_page),
            lambda response: _review_labels.validate_python(response.json()),
        )

    async def add_label(self, token: str, request_id: int, label_name: str) -> TrackerResult[int]:
        """Add a label to a review request (GitHub treats pull requests as issues for labels)."""
        return await self._execute(
            token,
            "add_label",
            lambda client: client.rest.issues.async_add_labels(
                owner=self.owner,
                repo=self.repo_name,
                issue_number=request_id,
                labels=[label_name],
            ),
            lambda response: response.status_code,
        )

    # Reviews
    async def post_review(self, token: str, request_id: int, verdict: ReviewVerdict, body: str = "") -> TrackerResult[int]:
        """Post a review verdict, omitting the body when it is empty."""
        params = self._omit_null_parameters(event=verdict.value, body=body or None)
        return await self._execute(
            token,
            "post_review",
            lambda client: client.rest.pulls.async_create_review(
                owner=self.owner,
                repo=self.repo_name,
                pull_number=request_id,
                **params,
            ),
            lambda response: response.status_code,
        )

    # Content and revisions
    async def fetch_raw_content(self, token: str, url: str) -> TrackerResult[bytes]:
        """Fetch raw file content by absolute URL."""
        return await self._execute(
            token,
            "fetch_raw_content",
            lambda client: client.arequest("GET", url),
            lambda response: response.content,
        )

    async def get_commit_timestamp(self, token: str, sha: str) -> TrackerResult[datetime]:
        """Get the committer (or author) timestamp of a commit."""
        result = await self._execute(
            token,
            "get_commit_timestamp",
            lambda client: client.rest.repos.async_get_commit(owner=self.owner, repo=self.repo_name, ref=sha),
            lambda response: Commit.model_validate(response.json()),
        )
        if isinstance(result, TrackerFailure):
            return result
        timestamp = result.value.timestamp
        if timestamp is None:
            return no_data(f"Commit {sha} has no date")
        return Ok(timestamp)

    async def get_latest_revision_timestamp(self, token: str, request_id: int) -> TrackerResult[datetime]:
        """Get the timestamp of a review request's head revision."""
        request = await self.get_review_request(token, request_id)
        if isinstance(request, TrackerFailure):
            return request
        head_sha = request.value.head_sha
        if not head_sha:
            logger.info("Review request has no head revision", request_id=request_id)
            return no_data(f"Review request {request_id} has no head revision")
        return await self.get_commit_timestamp(token, head_sha)

    # Identity
    async def get_authenticated_user(self, token: str) -> TrackerResult[UserProfile]:
        """Get the user that owns the credential."""
        return await self._execute(
            token,
            "get_authenticated_user",
            lambda client: client.rest.users.async_get_authenticated(),
            lambda response: UserProfile.model_validate(response.json()),
        )

    async def check_collaborator(self, token: str, username: str) -> TrackerResult[bool]:
        """Check whether a user is a collaborator; GitHub answers 204 for yes and 404 for no."""
        result = await self._execute(
            token,
            "check_collaborator",
            lambda client: client.rest.repos.async_check_collaborator(owner=self.owner, repo=self.repo_name, username=username),
            lambda response: response.status_code == 204,
        )
        if isinstance(result, TrackerFailure) and result.kind == FailureKind.NOT_FOUND:
            return Ok(False)
        return result
