"""Base ABC for review tracker clients."""

from abc import ABC, abstractmethod
from datetime import datetime

from review_tracker.github.models import (
    FileCandidate,
    IssueComment,
    LabelEvent,
    ReviewLabel,
    ReviewRequest,
    ReviewVerdict,
    SearchPage,
    UserProfile,
)
from review_tracker.github.results import TrackerResult


class TrackerClientBase(ABC):
    """Base ABC for review tracker clients.

    Every operation takes the credential as its first argument and returns a
    ``TrackerResult`` instead of raising.
    """

    owner: str
    repo_name: str

    # Review request lookups
    @abstractmethod
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
        pass

    @abstractmethod
    async def get_review_request(self, token: str, request_id: int) -> TrackerResult[ReviewRequest]:
        """Get a single review request."""
        pass

    @abstractmethod
    async def list_request_files(self, token: str, request_id: int, per_page: int = 100) -> TrackerResult[list[FileCandidate]]:
        """List files changed by a review request."""
        pass

    @abstractmethod
    async def list_request_comments(
        self,
        token: str,
        request_id: int,
        since: datetime | None = None,
        per_page: int = 100,
    ) -> TrackerResult[list[IssueComment]]:
        """List conversation comments on a review request, optionally only those updated since a time."""
        pass

    @abstractmethod
    async def list_request_events(self, token: str, request_id: int, page: int, per_page: int) -> TrackerResult[list[LabelEvent]]:
        """List one page of a review request's event history."""
        pass

    # Labels
    @abstractmethod
    async def list_request_labels(self, token: str, request_id: int, per_page: int = 100) -> TrackerResult[list[ReviewLabel]]:
        """List labels currently on a review request."""
        pass

    @abstractmethod
    async def list_repository_labels(self, token: str, per_page: int = 100) -> TrackerResult[list[ReviewLabel]]:
        """List labels defined on the repository."""
        pass

    @abstractmethod
    async def add_label(self, token: str, request_id: int, label_name: str) -> TrackerResult[int]:
        """Add a label to a review request."""
        pass

    # Reviews
    @abstractmethod
    async def post_review(self, token: str, request_id: int, verdict: ReviewVerdict, body: str = "") -> TrackerResult[int]:
        """Post a review verdict on a review request."""
        pass

    # Content and revisions
    @abstractmethod
    async def fetch_raw_content(self, token: str, url: str) -> TrackerResult[bytes]:
        """Fetch raw file content by URL."""
        pass

    @abstractmethod
    async def get_commit_timestamp(self, token: str, sha: str) -> TrackerResult[datetime]:
        """Get the timestamp of a commit."""
        pass

    @abstractmethod
    async def get_latest_revision_timestamp(self, token: str, request_id: int) -> TrackerResult[datetime]:
        """Get the timestamp of a review request's head revision."""
        pass

    # Identity
    @abstractmethod
    async def get_authenticated_user(self, token: str) -> TrackerResult[UserProfile]:
        """Get the user that owns the credential."""
        pass

    @abstractmethod
    async def check_collaborator(self, token: str, username: str) -> TrackerResult[bool]:
        """Check whether a user is a collaborator on the repository."""
        pass
