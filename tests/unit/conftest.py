"""Fixtures for unit tests."""

from typing import Any, Generator
from unittest.mock import MagicMock

import pytest
import structlog

from review_tracker.configuration.env import Settings
from review_tracker.github.abc import TrackerClientBase


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        REPO="owner/repo",
        PENDING_LABEL_NAME="待更新",
        PENDING_SEARCH_PER_PAGE=50,
        PENDING_SEARCH_MAX_PAGES=10,
        LABEL_EVENTS_PER_PAGE=20,
        LABEL_EVENTS_MAX_PAGES=25,
        STALENESS_TOLERANCE_SECONDS=0,
    )


@pytest.fixture
def tracker() -> Any:
    """Tracker client double whose async operations are AsyncMocks."""
    mock = MagicMock(spec=TrackerClientBase)
    mock.owner = "owner"
    mock.repo_name = "repo"
    return mock
