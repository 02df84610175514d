"""
Decision results.

Authorization and service operations return `Ok(value)` or `Err(kind)`
instead of raising: a denial is the common case on every request, not an
exceptional one. The HTTP layer turns an `Err` into a response in one place
(see bulletin.api.errors).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


FORBIDDEN_MESSAGE = "You are not allowed to use this resource."


class ErrorKind(str, Enum):
    """Categories of failed decisions."""

    FORBIDDEN = "forbidden"
    INVALID_CREDENTIAL = "invalid_credential"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful decision carrying its value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """A failed decision. `message` is safe to show to the caller."""

    kind: ErrorKind
    message: str = ""

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def forbidden() -> Err:
    """The uniform denial. Never says why."""
    return Err(ErrorKind.FORBIDDEN, FORBIDDEN_MESSAGE)


def not_found(message: str = "Not found") -> Err:
    return Err(ErrorKind.NOT_FOUND, message)
