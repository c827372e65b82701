"""
Analyzer Service - LLM-based CV field experience analysis.

Estimates years of experience per recognized professional field
from plain CV text.
"""

from .service import CVAnalysisService

__all__ = ["CVAnalysisService"]
