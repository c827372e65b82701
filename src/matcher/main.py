"""
Matcher Service - Main entry point.
Scores candidates' projects against a job's required skills using LLM.

Usage:
    match-candidates --job job.yaml --candidates candidates.yaml
    match-candidates -j job.json -c candidates.json -o results.json -n 8
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from loguru import logger
from pydantic import ValidationError

from ai_core.client import AIClient
from ai_core.endpoints import GenerationEndpoint, build_endpoint
from shared.config import get_settings
from shared.logging import setup_logging
from shared.models import Candidate, Job

from .orchestrator import CandidateMatch, MatchingOrchestrator


def load_records(path: Path) -> Any:
    """Load a JSON document (by .json suffix) or a YAML one."""
    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def load_job(path: Path) -> Job:
    """Load and validate a job record."""
    return Job.model_validate(load_records(path))


def load_candidates(path: Path) -> list[Candidate]:
    """Load candidates from a list, or a mapping with a 'candidates' key."""
    data = load_records(path) or []
    if isinstance(data, dict):
        data = data.get("candidates", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of candidates in {path}")
    return [Candidate.model_validate(item) for item in data]


async def match_candidates(
    job: Job,
    candidates: list[Candidate],
    concurrency: Optional[int] = None,
    endpoint: Optional[GenerationEndpoint] = None,
) -> list[CandidateMatch]:
    """
    Score candidates for a job.

    Args:
        job: Job with required skills
        candidates: Candidates with their project views
        concurrency: Override matcher_max_concurrency
        endpoint: Generation endpoint (defaults to the configured provider)
    """
    settings = get_settings()
    client = AIClient(endpoint or build_endpoint(settings), settings=settings)
    orchestrator = MatchingOrchestrator(client, settings=settings, max_concurrency=concurrency)
    try:
        return await orchestrator.score_candidates(candidates, job)
    finally:
        await client.close()


def match_payload(job: Job, matches: list[CandidateMatch]) -> dict:
    """JSON-ready representation of batch results."""
    results = []
    for match in matches:
        entry: dict[str, Any] = {"candidate_id": match.candidate_id}
        if match.success:
            score = match.result.value
            entry.update(
                status="scored",
                compatibility_score=score.compatibility_score,
                matched_skills=sorted(score.matched_skills),
                missing_skills=sorted(score.missing_skills),
                summary=score.summary,
            )
        else:
            entry.update(status=match.result.error.kind.value, error=match.result.error.detail)
        results.append(entry)
    return {"job_id": job.job_id, "results": results}


@click.command()
@click.option(
    "--job",
    "-j",
    "job_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Job record (YAML or JSON) with required_skills",
)
@click.option(
    "--candidates",
    "-c",
    "candidates_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Candidate records (YAML or JSON) with projects",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write JSON results to this file instead of stdout",
)
@click.option(
    "--concurrency",
    "-n",
    type=click.IntRange(min=1),
    default=None,
    help="Candidates scored concurrently (default: matcher_max_concurrency)",
)
@click.option(
    "--min-score",
    "-m",
    type=click.IntRange(0, 100),
    default=70,
    help="Score counted as a good match in the summary line (does not filter results)",
)
def main(
    job_path: Path,
    candidates_path: Path,
    output: Optional[Path],
    concurrency: Optional[int],
    min_score: int,
):
    """Candidate Matcher - Scores candidate projects against a job using LLM."""
    setup_logging()

    try:
        job = load_job(job_path)
        candidates = load_candidates(candidates_path)
    except (ValidationError, ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid input: {e}")

    logger.info(f"Loaded job {job.job_id} and {len(candidates)} candidates")
    matches = asyncio.run(match_candidates(job, candidates, concurrency=concurrency))

    text = json.dumps(match_payload(job, matches), indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
    else:
        click.echo(text)

    scored = [m for m in matches if m.success]
    good = sum(1 for m in scored if m.result.value.compatibility_score >= min_score)
    click.echo(
        f"Scored: {len(scored)}/{len(matches)}, Good matches: {good}, "
        f"Not scored: {len(matches) - len(scored)}",
        err=output is None,
    )


if __name__ == "__main__":
    main()
