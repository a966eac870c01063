"""
Result values returned by admin commands.

A command either succeeds with a value or fails with one of a fixed set of
failure kinds. The HTTP layer maps each kind onto a status code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL = "INTERNAL_SERVER_ERROR"


HTTP_STATUS = {
    FailureKind.UNAUTHORIZED: 401,
    FailureKind.NOT_FOUND: 404,
    FailureKind.CONFLICT: 409,
    FailureKind.FORBIDDEN: 403,
    FailureKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]


Result = Union[Success[T], Failure]


def unauthorized(message: str) -> Failure:
    return Failure(FailureKind.UNAUTHORIZED, message)


def not_found(message: str) -> Failure:
    return Failure(FailureKind.NOT_FOUND, message)


def conflict(message: str) -> Failure:
    return Failure(FailureKind.CONFLICT, message)


def forbidden(message: str) -> Failure:
    return Failure(FailureKind.FORBIDDEN, message)


def internal(message: str) -> Failure:
    return Failure(FailureKind.INTERNAL, message)
