"""Failure taxonomy for the vaccination engine.

Inside a store transaction the engine raises :class:`EngineError` subclasses
so the transaction rolls back. Public service functions catch them at their
boundary and return a :data:`Result` instead, which forces callers to handle
each failure kind.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, Literal, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    CONCURRENCY_CONFLICT = "concurrency_conflict"


class EngineError(Exception):
    """Base class for failures the engine reports to its callers."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_failure(self) -> "Failure":
        return Failure(kind=self.kind, message=self.message)


class NotFoundError(EngineError):
    kind = ErrorKind.NOT_FOUND


class InvalidStateError(EngineError):
    kind = ErrorKind.INVALID_STATE


class ConcurrencyConflict(EngineError):
    """Serialization failure in the store; the transaction may be retried."""

    kind = ErrorKind.CONCURRENCY_CONFLICT


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    ok: Literal[False] = False


Result = Union[Success[T], Failure]


__all__ = [
    "ConcurrencyConflict",
    "EngineError",
    "ErrorKind",
    "Failure",
    "InvalidStateError",
    "NotFoundError",
    "Result",
    "Success",
]
