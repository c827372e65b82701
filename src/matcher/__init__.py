"""
Matcher Service - LLM-based candidate-job matching.

Pre-filters a candidate's projects by skill overlap, then asks the LLM
for a 0-100 compatibility score. Batches isolate per-candidate failures.
"""

from .orchestrator import BatchStats, CandidateMatch, MatchingOrchestrator, parse_match_score
from .skill_filter import filter_relevant_projects

__all__ = [
    "BatchStats",
    "CandidateMatch",
    "MatchingOrchestrator",
    "parse_match_score",
    "filter_relevant_projects",
]
