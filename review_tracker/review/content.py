"""Selects and loads the lyric file a review request changes."""

from dataclasses import dataclass
from typing import Sequence

import structlog

from review_tracker.configuration.env import Settings
from review_tracker.configuration.env import settings as default_settings
from review_tracker.github.abc import TrackerClientBase
from review_tracker.github.models import FileCandidate
from review_tracker.github.results import Ok, TrackerFailure, TrackerResult, no_data
from review_tracker.review.ui import ReviewSession, ReviewSessionSource, ReviewUI, ToolMode, UserNotice
from review_tracker.synchronize.notifications import NotificationAction
from review_tracker.utils.constants import NOTIFICATION_SOURCE_REVIEW, SUPPORTED_REVIEW_EXTENSIONS

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LoadedReviewFile:
    """File opened in the editor for a review request."""

    file_name: str
    raw_url: str


def pick_review_file(
    files: Sequence[FileCandidate],
    priority: Sequence[str] = SUPPORTED_REVIEW_EXTENSIONS,
) -> FileCandidate | None:
    """Pick the changed file with the highest priority extension.

    Files with unsupported extensions are ignored. Files sharing an extension
    keep their original order.
    """
    rank = {extension.lower(): index for index, extension in enumerate(priority)}
    supported = [file for file in files if file.extension in rank]
    if not supported:
        return None
    return sorted(supported, key=lambda file: rank[file.extension])[0]


async def load_review_file_from_request(
    tracker: TrackerClientBase,
    token: str,
    request_id: int,
    title: str,
    source: ReviewSessionSource,
    ui: ReviewUI,
    settings: Settings | None = None,
) -> TrackerResult[LoadedReviewFile]:
    """Open the lyric file of a review request in the editor.

    When the request changes no supported file, the user is warned and
    ``no-data`` is returned. The editor is only touched once the file content
    has been fetched.
    """
    settings = settings or default_settings
    files = await tracker.list_request_files(token, request_id, per_page=settings.REQUEST_FILES_PER_PAGE)
    if isinstance(files, TrackerFailure):
        return files

    pick = pick_review_file(files.value)
    if pick is None or not pick.raw_url:
        logger.info("No supported lyric file in review request", request_id=request_id, file_count=len(files.value))
        ui.push_notification(UserNotice(title="No lyric file found that can be opened", level="warning", source=NOTIFICATION_SOURCE_REVIEW))
        return no_data(f"Review request {request_id} changes no supported lyric file")

    content = await tracker.fetch_raw_content(token, pick.raw_url)
    if isinstance(content, TrackerFailure):
        return content

    file_name = pick.basename
    ui.set_review_session(ReviewSession(request_id=request_id, title=title, file_name=file_name, source=source))
    ui.open_file(file_name, content.value)
    ui.set_tool_mode(ToolMode.EDIT)
    logger.info("Opened review file", request_id=request_id, file_name=file_name, source=source.value)
    return Ok(LoadedReviewFile(file_name=file_name, raw_url=pick.raw_url))


async def open_review_update_from_notification(
    tracker: TrackerClientBase,
    token: str,
    action: NotificationAction,
    ui: ReviewUI,
    settings: Settings | None = None,
) -> TrackerResult[LoadedReviewFile]:
    """Open the file of a pending review request from its notification.

    The request is re-read first so the session shows its current title.
    """
    request = await tracker.get_review_request(token, action.request_id)
    if isinstance(request, TrackerFailure):
        return request
    title = request.value.title or action.title
    return await load_review_file_from_request(
        tracker,
        token,
        action.request_id,
        title,
        ReviewSessionSource.UPDATE,
        ui,
        settings=settings,
    )
