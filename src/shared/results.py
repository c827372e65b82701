"""
Result values and error taxonomy for the analysis core.

Every stage below the CLI reports failure as a value rather than raising,
so a single bad item can never unwind a batch.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")
E = TypeVar("E")


class FailureKind(str, Enum):
    """Classification of a failed generation call."""

    RATE_LIMITED = "rate_limited"  # HTTP 429, retried
    SERVICE_UNAVAILABLE = "service_unavailable"  # HTTP 503 or no response, retried
    FATAL = "fatal"  # Anything else, never retried

    @property
    def transient(self) -> bool:
        return self is not FailureKind.FATAL


class ParseErrorKind(str, Enum):
    """Why model output could not be turned into structured data."""

    MALFORMED = "malformed"
    NO_OBJECT_FOUND = "no_object_found"


class AnalysisErrorKind(str, Enum):
    """CV analysis failure."""

    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"


class MatchErrorKind(str, Enum):
    """Candidate scoring failure."""

    NO_RELEVANT_PROJECTS = "no_relevant_projects"  # Legitimate zero-overlap outcome
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"
    CANCELLED = "cancelled"  # Batch cancelled before this candidate started
    INTERNAL = "internal"  # Unexpected exception, isolated to this candidate


@dataclass(frozen=True)
class ParseError:
    kind: ParseErrorKind
    detail: str = ""


@dataclass(frozen=True)
class AnalysisError:
    kind: AnalysisErrorKind
    detail: str = ""


@dataclass(frozen=True)
class MatchError:
    kind: MatchErrorKind
    detail: str = ""
    failure: Optional[FailureKind] = None


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """Either a value or an error, never both."""

    value: Optional[T] = None
    error: Optional[E] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, value: T) -> "Result[T, E]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: E) -> "Result[T, E]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value, raising ValueError if this is a failure."""
        if self.error is not None:
            raise ValueError(f"Result is a failure: {self.error}")
        return self.value  # type: ignore[return-value]
