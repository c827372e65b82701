"""
Models for candidates, jobs, generation calls and analysis results.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .fields import ProfessionalField, field_key
from .results import FailureKind


def normalize_skill(skill: str) -> str:
    """Comparison key for a skill name."""
    return " ".join(skill.split()).lower()


# =============================================================================
# Inbound records (supplied by the persistence collaborator)
# =============================================================================


class CandidateProjectView(BaseModel):
    """Read-only view of a repository linked to a candidate."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Project name")
    link: str = Field(default="", description="Repository URL")
    declared_skills: frozenset[str] = Field(
        default_factory=frozenset, description="Skills declared on the project"
    )


class Candidate(BaseModel):
    """Candidate fields read by the matcher."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str = Field(..., description="Candidate identifier")
    name: str = Field(default="", description="Display name")
    projects: tuple[CandidateProjectView, ...] = Field(default_factory=tuple)


class Job(BaseModel):
    """Job fields read by the matcher."""

    model_config = ConfigDict(frozen=True)

    job_id: str = Field(..., description="Job identifier")
    title: str = Field(default="", description="Job title")
    required_skills: frozenset[str] = Field(default_factory=frozenset)


# =============================================================================
# Match score (validated model output)
# =============================================================================


class MatchScore(BaseModel):
    """Validated compatibility assessment for one candidate against one job."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    compatibility_score: int = Field(..., ge=0, le=100, strict=True)
    matched_skills: frozenset[str]
    missing_skills: frozenset[str]
    summary: str

    @field_validator("matched_skills", "missing_skills", mode="before")
    @classmethod
    def _require_string_list(cls, value):
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise ValueError("must be a list of skill names")
        if not all(isinstance(item, str) for item in value):
            raise ValueError("skill names must be strings")
        return frozenset(item.strip() for item in value if item.strip())

    @model_validator(mode="after")
    def _check_disjoint(self) -> "MatchScore":
        matched = {normalize_skill(s) for s in self.matched_skills}
        overlap = sorted(s for s in self.missing_skills if normalize_skill(s) in matched)
        if overlap:
            raise ValueError(f"skills both matched and missing: {overlap}")
        return self


# =============================================================================
# Generation calls
# =============================================================================


@dataclass(frozen=True)
class GenerationRequest:
    """One prompt sent to the generation endpoint."""

    prompt: str
    temperature: float = 0.3
    top_p: float = 0.9


@dataclass(frozen=True)
class GenerationResult:
    """Raw text from the endpoint, or a classified failure."""

    text: Optional[str] = None
    failure: Optional[FailureKind] = None
    detail: str = ""
    attempts: int = 1

    @property
    def success(self) -> bool:
        return self.failure is None

    @classmethod
    def ok(cls, text: str, attempts: int = 1) -> "GenerationResult":
        return cls(text=text, attempts=attempts)

    @classmethod
    def fail(cls, kind: FailureKind, detail: str, attempts: int = 1) -> "GenerationResult":
        return cls(failure=kind, detail=detail, attempts=attempts)


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff configuration shared by every generation call."""

    max_attempts: int = 3
    base_delay: float = 1.0  # seconds
    backoff_multiplier: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.backoff_multiplier < 1:
            raise ValueError("base_delay must be >= 0 and backoff_multiplier >= 1")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return self.base_delay * self.backoff_multiplier ** (attempt - 1)


# =============================================================================
# CV analysis output
# =============================================================================


@dataclass(frozen=True)
class FieldExperience:
    """Years of experience in one professional field."""

    field: Union[ProfessionalField, str]
    years: int

    @property
    def name(self) -> str:
        return str(self.field)


@dataclass(frozen=True)
class FieldExperienceMap:
    """Ordered field -> years pairs with no duplicate field."""

    entries: tuple[FieldExperience, ...] = field(default_factory=tuple)

    def __post_init__(self):
        seen: set[str] = set()
        for entry in self.entries:
            key = field_key(entry.name)
            if key in seen:
                raise ValueError(f"Duplicate field: {entry.name}")
            if entry.years < 0:
                raise ValueError(f"Negative years for {entry.name}")
            seen.add(key)

    def __iter__(self) -> Iterator[FieldExperience]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def pairs(self) -> list[tuple[Union[ProfessionalField, str], int]]:
        return [(entry.field, entry.years) for entry in self.entries]

    def years_for(self, name: Union[ProfessionalField, str]) -> Optional[int]:
        """Years recorded for a field, matched by normalized name."""
        key = field_key(str(name))
        for entry in self.entries:
            if field_key(entry.name) == key:
                return entry.years
        return None

    def to_dict(self) -> dict[str, int]:
        return {entry.name: entry.years for entry in self.entries}
