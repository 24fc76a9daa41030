"""Typed outcomes returned by every tracker operation.

Remote and transport problems never escape as exceptions. Each call returns
either ``Ok`` wrapping the parsed value or a ``TrackerFailure`` describing
what went wrong.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, TypeAlias, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class FailureKind(str, Enum):
    """Failure taxonomy for tracker calls."""

    MISSING_CREDENTIAL = "missing-credential"
    INVALID_CREDENTIAL = "invalid-credential"
    REMOTE_ERROR = "remote-error"
    NOT_FOUND = "not-found"
    NETWORK_ERROR = "network-error"
    # A lookup that legitimately found nothing. Not an error.
    NO_DATA = "no-data"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful tracker call."""

    value: T


@dataclass(frozen=True)
class TrackerFailure:
    """Unsuccessful tracker call."""

    kind: FailureKind
    status_code: int | None = None
    message: str = ""

    @property
    def is_error(self) -> bool:
        """Whether this failure is a real error rather than an empty lookup."""
        return self.kind != FailureKind.NO_DATA


TrackerResult: TypeAlias = Ok[T] | TrackerFailure


def map_result(result: "TrackerResult[T]", func: Callable[[T], U]) -> "TrackerResult[U]":
    """Apply ``func`` to the value of a successful result, passing failures through."""
    if isinstance(result, TrackerFailure):
        return result
    return Ok(func(result.value))


def no_data(message: str = "") -> TrackerFailure:
    """Shortcut for a lookup that found nothing."""
    return TrackerFailure(kind=FailureKind.NO_DATA, message=message)


def missing_credential() -> TrackerFailure:
    """Shortcut for a call attempted without a usable credential."""
    return TrackerFailure(kind=FailureKind.MISSING_CREDENTIAL, message="No GitHub credential provided")
