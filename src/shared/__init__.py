# Shared module for common models, results, and configuration
from .config import Settings, get_settings
from .fields import ProfessionalField, resolve_field
from .models import (
    Candidate,
    CandidateProjectView,
    FieldExperience,
    FieldExperienceMap,
    GenerationRequest,
    GenerationResult,
    Job,
    MatchScore,
    RetryPolicy,
)
from .results import (
    AnalysisError,
    AnalysisErrorKind,
    FailureKind,
    MatchError,
    MatchErrorKind,
    ParseError,
    ParseErrorKind,
    Result,
)

__all__ = [
    "Settings",
    "get_settings",
    "ProfessionalField",
    "resolve_field",
    "Candidate",
    "CandidateProjectView",
    "FieldExperience",
    "FieldExperienceMap",
    "GenerationRequest",
    "GenerationResult",
    "Job",
    "MatchScore",
    "RetryPolicy",
    "AnalysisError",
    "AnalysisErrorKind",
    "FailureKind",
    "MatchError",
    "MatchErrorKind",
    "ParseError",
    "ParseErrorKind",
    "Result",
]
