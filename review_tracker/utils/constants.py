"""Shared constants used across the application."""

# This file is intended to hold shared constants.

# Remote Repository Constants
# ---------------------------

DEFAULT_REPO = "Steve-xmh/amll-ttml-db"
"""Repository (owner/repo) that review requests are filed against."""

DEFAULT_PENDING_LABEL_NAME = "待更新"
"""Label marking a review request as waiting for an update from its submitter."""

# Notification Constants
# ----------------------

PENDING_UPDATE_NOTIFICATION_PREFIX = "pending-update-"
"""Prefix of notification ids derived from review request ids."""

OPEN_REVIEW_UPDATE_ACTION = "open-review-update"
"""Action type attached to pending update notifications."""

NOTIFICATION_SOURCE_GITHUB = "github"
NOTIFICATION_SOURCE_REVIEW = "review"

# Review File Constants
# ---------------------

SUPPORTED_REVIEW_EXTENSIONS: tuple[str, ...] = ("ttml", "lrc", "eslrc", "qrc", "yrc", "lys")
"""Lyric file extensions that can be opened for review, highest priority first."""

# Update Status Constants
# -----------------------

UPDATE_BOT_LOGIN = "github-actions"
"""Account whose comments on a review request report a rejected file update."""

DEFAULT_REQUEST_COMMENTS_PER_PAGE = 100

GITHUB_WEB_URL = "https://github.com"

# Pagination Defaults
# -------------------

DEFAULT_PENDING_SEARCH_PER_PAGE = 50
DEFAULT_PENDING_SEARCH_MAX_PAGES = 10
DEFAULT_LABEL_EVENTS_PER_PAGE = 20
DEFAULT_LABEL_EVENTS_MAX_PAGES = 25
DEFAULT_LABELS_PER_PAGE = 100
DEFAULT_REQUEST_FILES_PER_PAGE = 100

# Rate Limit Retry Defaults
# -------------------------

RATE_LIMIT_MAX_RETRIES = 3
"""Attempts made after the first one when GitHub reports a rate limit."""

RATE_LIMIT_INITIAL_DELAY = 5.0
RATE_LIMIT_MAX_DELAY = 60.0
