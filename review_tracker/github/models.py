"""Pydantic models for the GitHub payloads the review tracker reads."""

from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReviewVerdict(str, Enum):
    """Verdict posted when a review is submitted."""

    APPROVE = "APPROVE"
    REQUEST_CHANGES = "REQUEST_CHANGES"


class ReviewLabel(BaseModel):
    """Pydantic model for a label attached to a review request."""

    name: str
    color: str = ""


class ReviewRequest(BaseModel):
    """Pydantic model for a review request (a pull request against the lyric database).

    Search results and pull request details share this model. Fields missing
    from one of those payloads are left as ``None`` or empty.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="number")
    title: str = ""
    html_url: str = ""
    body: str | None = None
    labels: list[ReviewLabel] = Field(default_factory=list)
    head_sha: str | None = None
    created_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def flatten_head(cls, data: Any) -> Any:
        """Lift ``head.sha`` from a pull request payload into ``head_sha``."""
        if isinstance(data, dict) and "head_sha" not in data:
            head = data.get("head")
            if isinstance(head, dict):
                data = {**data, "head_sha": head.get("sha")}
        return data


class LabelEvent(BaseModel):
    """Pydantic model for an entry of an issue's event history."""

    event: str | None = None
    label_name: str | None = None
    created_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def flatten_label(cls, data: Any) -> Any:
        """Lift ``label.name`` into ``label_name``."""
        if isinstance(data, dict) and "label_name" not in data:
            label = data.get("label")
            if isinstance(label, dict):
                data = {**data, "label_name": label.get("name")}
        return data


class IssueComment(BaseModel):
    """Pydantic model for a conversation comment on a review request."""

    body: str | None = None
    user_login: str | None = None
    created_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def flatten_user(cls, data: Any) -> Any:
        """Lift ``user.login`` into ``user_login``."""
        if isinstance(data, dict) and "user_login" not in data:
            user = data.get("user")
            if isinstance(user, dict):
                data = {**data, "user_login": user.get("login")}
        return data


class FileCandidate(BaseModel):
    """Pydantic model for a file changed by a review request."""

    filename: str
    raw_url: str | None = None

    @property
    def extension(self) -> str:
        """Lower-cased file extension without the leading dot."""
        return PurePosixPath(self.filename).suffix.lstrip(".").lower()

    @property
    def basename(self) -> str:
        """File name without its directory."""
        return PurePosixPath(self.filename).name or self.filename


class SearchPage(BaseModel):
    """One page of the issue search endpoint."""

    total_count: int = 0
    incomplete_results: bool = False
    items: list[ReviewRequest] = Field(default_factory=list)


class GitActor(BaseModel):
    """Author or committer of a git commit."""

    date: datetime | None = None


class GitCommit(BaseModel):
    """Git data of a commit."""

    author: GitActor | None = None
    committer: GitActor | None = None


class Commit(BaseModel):
    """Pydantic model for the commit endpoint payload."""

    sha: str = ""
    commit: GitCommit | None = None

    @property
    def timestamp(self) -> datetime | None:
        """Committer date, falling back to the author date."""
        if self.commit is None:
            return None
        for actor in (self.commit.committer, self.commit.author):
            if actor is not None and actor.date is not None:
                return actor.date
        return None


class UserProfile(BaseModel):
    """Pydantic model for the authenticated GitHub user."""

    login: str = ""
    id: int | None = None
