"""Interfaces the review workflows call back into the user interface through."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from review_tracker.synchronize.notifications import NotificationLevel


class ToolMode(str, Enum):
    """Editor tool modes the workflows can switch to."""

    EDIT = "edit"
    SYNC = "sync"
    PREVIEW = "preview"
    REVIEW = "review"


class ReviewSessionSource(str, Enum):
    """Why a review session was opened."""

    REVIEW = "review"
    UPDATE = "update"


@dataclass(frozen=True)
class ReviewSession:
    """Descriptor of the review request currently open in the editor."""

    request_id: int
    title: str
    file_name: str
    source: ReviewSessionSource


@dataclass(frozen=True)
class UserNotice:
    """Transient notification pushed to the user."""

    title: str
    level: NotificationLevel = "info"
    source: str | None = None
    description: str | None = None


class ReviewUI(Protocol):
    """Callbacks provided by the user interface."""

    def open_file(self, file_name: str, content: bytes, force_extension: str | None = None) -> None: ...

    def set_tool_mode(self, mode: ToolMode) -> None: ...

    def set_review_session(self, session: ReviewSession) -> None: ...

    def push_notification(self, notice: UserNotice) -> None: ...
