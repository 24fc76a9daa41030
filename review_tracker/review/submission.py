"""Contains the review submission workflow."""

from dataclasses import dataclass

import structlog

from review_tracker.configuration.env import Settings
from review_tracker.configuration.env import settings as default_settings
from review_tracker.github.abc import TrackerClientBase
from review_tracker.github.models import ReviewVerdict
from review_tracker.github.results import TrackerFailure

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a review submission.

    ``ok`` reflects the review post alone. A review that was posted while the
    follow-up label could not be applied is still ``ok`` and reports the label
    problem through ``label_status`` and ``label_failure``.
    """

    ok: bool
    status: int | None = None
    label_status: int | None = None
    failure: TrackerFailure | None = None
    label_failure: TrackerFailure | None = None

    @property
    def partial(self) -> bool:
        """Review posted, label not applied."""
        return self.ok and self.label_failure is not None


async def submit_review(
    tracker: TrackerClientBase,
    token: str,
    request_id: int,
    verdict: ReviewVerdict,
    body: str = "",
    settings: Settings | None = None,
) -> SubmissionResult:
    """Post a review verdict and, when requesting changes, apply the pending label.

    The label is bookkeeping on top of a review that is already recorded, so a
    failure to apply it never turns the submission into a failure.
    """
    settings = settings or default_settings
    posted = await tracker.post_review(token, request_id, verdict, body)
    if isinstance(posted, TrackerFailure):
        logger.warning(
            "Failed to post review",
            request_id=request_id,
            verdict=verdict.value,
            failure=posted.kind.value,
            status_code=posted.status_code,
        )
        return SubmissionResult(ok=False, status=posted.status_code, failure=posted)

    logger.info("Posted review", request_id=request_id, verdict=verdict.value, status_code=posted.value)
    if verdict != ReviewVerdict.REQUEST_CHANGES:
        return SubmissionResult(ok=True, status=posted.value)

    labelled = await tracker.add_label(token, request_id, settings.PENDING_LABEL_NAME)
    if isinstance(labelled, TrackerFailure):
        logger.warning(
            "Review posted but pending label could not be applied",
            request_id=request_id,
            label=settings.PENDING_LABEL_NAME,
            failure=labelled.kind.value,
            status_code=labelled.status_code,
        )
        return SubmissionResult(ok=True, status=posted.value, label_status=labelled.status_code, label_failure=labelled)
    logger.info("Applied pending label", request_id=request_id, label=settings.PENDING_LABEL_NAME)
    return SubmissionResult(ok=True, status=posted.value)
