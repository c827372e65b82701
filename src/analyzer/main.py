"""
Analyzer Service - Main entry point.
Estimates field experience from a plain-text CV using LLM.

Usage:
    analyze-cv path/to/cv.txt
    analyze-cv path/to/cv.txt --lenient --output fields.json
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from ai_core.client import AIClient
from ai_core.endpoints import GenerationEndpoint, build_endpoint
from shared.config import get_settings
from shared.logging import setup_logging
from shared.models import FieldExperienceMap
from shared.results import AnalysisError, Result

from .service import CVAnalysisService


async def analyze_cv_file(
    cv_path: Path,
    strict: Optional[bool] = None,
    endpoint: Optional[GenerationEndpoint] = None,
) -> Result[FieldExperienceMap, AnalysisError]:
    """
    Analyze a plain-text CV file.

    Args:
        cv_path: Text file produced by the document extraction step
        strict: Override the vocabulary strictness setting
        endpoint: Generation endpoint (defaults to the configured provider)
    """
    settings = get_settings()
    cv_text = cv_path.read_text(encoding="utf-8")
    logger.info(f"Analyzing CV: {cv_path} ({len(cv_text)} chars)")

    client = AIClient(endpoint or build_endpoint(settings), settings=settings)
    service = CVAnalysisService(client, settings=settings, strict_fields=strict)
    try:
        return await service.analyze_cv(cv_text)
    finally:
        await client.close()


def fields_payload(fields: FieldExperienceMap) -> dict:
    """JSON-ready representation of a field experience map."""
    return {"fields": [{"field": entry.name, "years": entry.years} for entry in fields]}


@click.command()
@click.argument(
    "cv_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--lenient",
    is_flag=True,
    help="Accept fields outside the recognized vocabulary (logged)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write JSON result to this file instead of stdout",
)
def main(cv_file: Path, lenient: bool, output: Optional[Path]):
    """CV Analyzer - Estimates years of experience per professional field."""
    setup_logging()

    result = asyncio.run(analyze_cv_file(cv_file, strict=False if lenient else None))
    if not result.success:
        raise click.ClickException(
            f"CV analysis {result.error.kind.value}: {result.error.detail}"
        )

    text = json.dumps(fields_payload(result.value), indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
        click.echo(f"Saved {len(result.value)} fields to {output}")
    else:
        click.echo(text)


if __name__ == "__main__":
    main()
