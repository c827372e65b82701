"""
Candidate-job matching using LLM.

Scores one candidate's projects against a job's required skills, and scores
whole candidate batches with bounded concurrency and per-candidate failure
isolation.
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from loguru import logger
from pydantic import ValidationError

from ai_core.client import AIClient
from ai_core.extraction import extract_json_object, locate_payload
from ai_core.prompts import build_match_prompt
from shared.config import Settings, get_settings
from shared.models import Candidate, GenerationRequest, Job, MatchScore
from shared.results import MatchError, MatchErrorKind, Result

from .skill_filter import filter_relevant_projects

REQUIRED_KEYS = ("compatibility_score", "matched_skills", "missing_skills", "summary")


def _malformed(detail: str) -> Result[MatchScore, MatchError]:
    return Result.fail(MatchError(MatchErrorKind.MALFORMED, detail))


def parse_match_score(text: str) -> Result[MatchScore, MatchError]:
    """
    Turn raw model output into a validated MatchScore.

    The JSON object is recovered from fences or surrounding prose, searched
    for a dict holding all four keys (it may sit inside an envelope), then
    validated.
    """
    extracted = extract_json_object(text)
    if not extracted.success:
        return _malformed(extracted.error.detail)

    try:
        data = json.loads(extracted.value)
    except ValueError as e:
        return _malformed(f"invalid JSON: {e}")

    payload = locate_payload(data, REQUIRED_KEYS)
    if payload is None:
        present = sorted(data) if isinstance(data, dict) else []
        missing = [key for key in REQUIRED_KEYS if key not in present]
        return _malformed(f"missing keys: {missing}")

    try:
        return Result.ok(MatchScore.model_validate(payload))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
            for err in e.errors()
        )
        return _malformed(problems)


@dataclass(frozen=True)
class CandidateMatch:
    """Outcome of scoring one candidate in a batch."""

    candidate_id: str
    result: Result[MatchScore, MatchError]

    @property
    def success(self) -> bool:
        return self.result.success


@dataclass
class BatchStats:
    """Statistics for a batch scoring run."""

    candidates: int = 0
    scored: int = 0
    no_relevant_projects: int = 0
    failed: int = 0
    cancelled: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def duration_seconds(self) -> float:
        return time.time() - self.start_time

    def record(self, result: Result[MatchScore, MatchError]) -> None:
        if result.success:
            self.scored += 1
        elif result.error.kind is MatchErrorKind.NO_RELEVANT_PROJECTS:
            self.no_relevant_projects += 1
        elif result.error.kind is MatchErrorKind.CANCELLED:
            self.cancelled += 1
        else:
            self.failed += 1

    def __str__(self) -> str:
        return (
            f"Candidates: {self.candidates}, Scored: {self.scored}, "
            f"No relevant projects: {self.no_relevant_projects}, "
            f"Failed: {self.failed}, Cancelled: {self.cancelled}, "
            f"Duration: {self.duration_seconds:.1f}s"
        )


class MatchingOrchestrator:
    """Scores candidates against jobs using the generation endpoint."""

    def __init__(
        self,
        client: AIClient,
        settings: Optional[Settings] = None,
        max_concurrency: Optional[int] = None,
    ):
        self.settings = settings or get_settings()
        self.client = client
        self.max_concurrency = max_concurrency or self.settings.matcher_max_concurrency

    async def score_candidate(
        self,
        candidate: Candidate,
        job: Job,
    ) -> Result[MatchScore, MatchError]:
        """
        Score one candidate against one job.

        Candidates with no project sharing a required skill are rejected
        with NO_RELEVANT_PROJECTS before any network call.
        """
        relevant = filter_relevant_projects(candidate.projects, job.required_skills)
        if not relevant:
            logger.info(
                f"No relevant projects for candidate {candidate.candidate_id} "
                f"(job {job.job_id}), skipping LLM call"
            )
            return Result.fail(
                MatchError(
                    MatchErrorKind.NO_RELEVANT_PROJECTS,
                    f"none of {len(candidate.projects)} projects use a required skill",
                )
            )

        logger.debug(
            f"Matching candidate {candidate.candidate_id} on "
            f"{len(relevant)}/{len(candidate.projects)} projects"
        )
        request = GenerationRequest(
            prompt=build_match_prompt(relevant, job.required_skills),
            temperature=self.settings.matching_temperature,
            top_p=self.settings.ai_top_p,
        )
        generated = await self.client.generate(request)

        if not generated.success:
            logger.warning(
                f"Matching unavailable for candidate {candidate.candidate_id}: "
                f"{generated.failure.value} - {generated.detail}"
            )
            return Result.fail(
                MatchError(
                    MatchErrorKind.UNAVAILABLE,
                    generated.detail,
                    failure=generated.failure,
                )
            )

        parsed = parse_match_score(generated.text)
        if not parsed.success:
            logger.warning(
                f"Malformed match response for candidate {candidate.candidate_id}: "
                f"{parsed.error.detail}"
            )
            return parsed

        logger.info(
            f"Matched candidate {candidate.candidate_id} to job {job.job_id}: "
            f"score={parsed.value.compatibility_score}"
        )
        return parsed

    async def _score_isolated(self, candidate: Candidate, job: Job) -> Result[MatchScore, MatchError]:
        """score_candidate, with any unexpected exception kept to this candidate."""
        try:
            return await self.score_candidate(candidate, job)
        except Exception as e:
            logger.exception(f"Scoring crashed for candidate {candidate.candidate_id}")
            return Result.fail(MatchError(MatchErrorKind.INTERNAL, f"{type(e).__name__}: {e}"))

    async def score_candidates(
        self,
        candidates: Sequence[Candidate],
        job: Job,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> list[CandidateMatch]:
        """
        Score every candidate independently.

        A failure is recorded against its candidate only. Setting cancel_event
        stops candidates that have not started yet (they are reported as
        CANCELLED); in-flight calls run to completion.

        Returns:
            One CandidateMatch per candidate, in input order
        """
        stats = BatchStats(candidates=len(candidates))
        semaphore = asyncio.Semaphore(self.max_concurrency)

        logger.info(
            f"Scoring {len(candidates)} candidates for job {job.job_id} "
            f"(concurrency: {self.max_concurrency})"
        )

        async def run(candidate: Candidate) -> CandidateMatch:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    result = Result.fail(
                        MatchError(MatchErrorKind.CANCELLED, "batch cancelled before scoring")
                    )
                else:
                    result = await self._score_isolated(candidate, job)
            stats.record(result)
            return CandidateMatch(candidate_id=candidate.candidate_id, result=result)

        matches = await asyncio.gather(*(run(candidate) for candidate in candidates))

        logger.info(f"Batch complete for job {job.job_id}: {stats}")
        return list(matches)
