# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Explicit operation outcomes.

Identity operations return a :class:`Result` instead of raising for the
failures a caller is expected to handle.  Each failure carries an
:class:`ErrorKind` the HTTP layer maps to a status code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def success(value=None) -> Result:
    return Result(value=value)


def failure(kind: ErrorKind, message: str) -> Result:
    return Result(error=Failure(kind, message))
