"""
AI core - prompt construction, the generation client, and response recovery.

Shared by the CV analyzer and the candidate matcher.
"""

from .client import AIClient, classify_reply
from .endpoints import (
    EndpointReply,
    GeminiEndpoint,
    GenerationEndpoint,
    OpenAIEndpoint,
    build_endpoint,
    extract_envelope_text,
)
from .extraction import (
    extract_json_object,
    locate_payload,
    parse_field_experience_csv,
    scan_balanced_object,
)
from .prompts import InvalidInputError, build_cv_analysis_prompt, build_match_prompt

__all__ = [
    "AIClient",
    "classify_reply",
    "EndpointReply",
    "GeminiEndpoint",
    "GenerationEndpoint",
    "OpenAIEndpoint",
    "build_endpoint",
    "extract_envelope_text",
    "extract_json_object",
    "locate_payload",
    "parse_field_experience_csv",
    "scan_balanced_object",
    "InvalidInputError",
    "build_cv_analysis_prompt",
    "build_match_prompt",
]
