"""
CV analysis - turns CV text into years of experience per professional field.
"""

from typing import Optional

from loguru import logger

from ai_core.client import AIClient
from ai_core.extraction import parse_field_experience_csv
from ai_core.prompts import build_cv_analysis_prompt
from shared.config import Settings, get_settings
from shared.models import FieldExperienceMap, GenerationRequest
from shared.results import AnalysisError, AnalysisErrorKind, Result


class CVAnalysisService:
    """Estimates field experience from a CV using the generation endpoint."""

    def __init__(
        self,
        client: AIClient,
        settings: Optional[Settings] = None,
        strict_fields: Optional[bool] = None,
    ):
        self.settings = settings or get_settings()
        self.client = client
        self.strict_fields = (
            self.settings.analysis_strict_fields if strict_fields is None else strict_fields
        )

    async def analyze_cv(self, cv_text: str) -> Result[FieldExperienceMap, AnalysisError]:
        """
        Analyze CV text.

        Returns:
            Result with the field experience map, or AnalysisError
            (UNAVAILABLE if the endpoint failed, MALFORMED if its answer
            did not follow the field,years grammar)
        """
        if not cv_text.strip():
            logger.warning("Analyzing empty CV text")

        request = GenerationRequest(
            prompt=build_cv_analysis_prompt(cv_text),
            temperature=self.settings.analysis_temperature,
            top_p=self.settings.ai_top_p,
        )
        generated = await self.client.generate(request)

        if not generated.success:
            logger.warning(f"CV analysis unavailable: {generated.failure.value} - {generated.detail}")
            return Result.fail(
                AnalysisError(
                    AnalysisErrorKind.UNAVAILABLE,
                    f"{generated.failure.value}: {generated.detail}",
                )
            )

        parsed = parse_field_experience_csv(generated.text, strict=self.strict_fields)
        if not parsed.success:
            preview = generated.text[:200]
            logger.warning(f"Malformed CV analysis response ({parsed.error.detail}): {preview!r}")
            return Result.fail(AnalysisError(AnalysisErrorKind.MALFORMED, parsed.error.detail))

        logger.info(f"CV analysis found {len(parsed.value)} fields: {parsed.value.to_dict()}")
        return Result.ok(parsed.value)
