"""
Outcome of applying one event, and how exceptions map onto it.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import ValidationError
from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    ExecutionTimeout,
    PyMongoError,
    WriteConcernError,
)


class ApplyOutcome(str, Enum):
    APPLIED = "APPLIED"
    DUPLICATE = "DUPLICATE"
    REJECTED = "REJECTED"
    TRANSIENT = "TRANSIENT"
    PERMANENT = "PERMANENT"


@dataclass(frozen=True)
class ApplyResult:
    """
    APPLIED / DUPLICATE: commit the offset.
    REJECTED / PERMANENT: dead-letter, then commit.
    TRANSIENT: retry in place; dead-letter once the retry budget is spent.
    """
    outcome: ApplyOutcome
    reason: str = ""

    @classmethod
    def applied(cls, reason: str = "") -> "ApplyResult":
        return cls(ApplyOutcome.APPLIED, reason)

    @classmethod
    def duplicate(cls, reason: str = "") -> "ApplyResult":
        return cls(ApplyOutcome.DUPLICATE, reason)

    @classmethod
    def rejected(cls, reason: str) -> "ApplyResult":
        return cls(ApplyOutcome.REJECTED, reason)

    @classmethod
    def transient(cls, reason: str) -> "ApplyResult":
        return cls(ApplyOutcome.TRANSIENT, reason)

    @classmethod
    def permanent(cls, reason: str) -> "ApplyResult":
        return cls(ApplyOutcome.PERMANENT, reason)

    @property
    def is_retryable(self) -> bool:
        return self.outcome == ApplyOutcome.TRANSIENT

    @property
    def needs_dead_letter(self) -> bool:
        return self.outcome in (ApplyOutcome.REJECTED, ApplyOutcome.PERMANENT, ApplyOutcome.TRANSIENT)


# ConnectionFailure covers AutoReconnect, NetworkTimeout and ServerSelectionTimeoutError
TRANSIENT_ERRORS = (ConnectionFailure, ExecutionTimeout, WriteConcernError)
PERMANENT_ERRORS = (DuplicateKeyError, PyMongoError, ValidationError, ValueError)


def classify_exception(exc: Exception) -> ApplyResult:
    reason = f"{type(exc).__name__}: {exc}"
    if isinstance(exc, TRANSIENT_ERRORS):
        return ApplyResult.transient(reason)
    if isinstance(exc, PERMANENT_ERRORS):
        return ApplyResult.permanent(reason)
    return ApplyResult.permanent(f"unexpected error {reason}")
