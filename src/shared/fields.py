"""
Closed vocabulary of professional fields recognized by CV analysis.
"""

import re
from enum import Enum
from typing import Optional


class ProfessionalField(str, Enum):
    """Canonical professional field. The value is the display name."""

    SOFTWARE_DEVELOPMENT = "Software Development"
    WEB_DEVELOPMENT = "Web Development"
    MOBILE_DEVELOPMENT = "Mobile Development"
    DATA_SCIENCE = "Data Science"
    DATA_ENGINEERING = "Data Engineering"
    MACHINE_LEARNING = "Machine Learning"
    ARTIFICIAL_INTELLIGENCE = "Artificial Intelligence"
    BIG_DATA = "Big Data"
    CLOUD_COMPUTING = "Cloud Computing"
    DEVOPS = "DevOps"
    SITE_RELIABILITY_ENGINEERING = "Site Reliability Engineering"
    CYBERSECURITY = "Cybersecurity"
    NETWORK_ENGINEERING = "Network Engineering"
    DATABASE_ADMINISTRATION = "Database Administration"
    SYSTEMS_ADMINISTRATION = "Systems Administration"
    EMBEDDED_SYSTEMS = "Embedded Systems"
    INTERNET_OF_THINGS = "Internet of Things"
    ROBOTICS = "Robotics"
    COMPUTER_VISION = "Computer Vision"
    NATURAL_LANGUAGE_PROCESSING = "Natural Language Processing"
    GAME_DEVELOPMENT = "Game Development"
    BLOCKCHAIN = "Blockchain"
    UI_UX_DESIGN = "UI/UX Design"
    QUALITY_ASSURANCE = "Quality Assurance"
    PROJECT_MANAGEMENT = "Project Management"
    PRODUCT_MANAGEMENT = "Product Management"
    BUSINESS_ANALYSIS = "Business Analysis"
    IT_SUPPORT = "IT Support"
    IT_CONSULTING = "IT Consulting"
    TECHNICAL_WRITING = "Technical Writing"

    def __str__(self) -> str:
        return self.value


def field_key(name: str) -> str:
    """Normalize a field name for lookup: lowercase, alphanumerics only."""
    return re.sub(r"[^a-z0-9]", "", name.lower())


# "software development", "SoftwareDevelopment" and "SOFTWARE_DEVELOPMENT"
# all collapse to the same key
_FIELD_LOOKUP: dict[str, ProfessionalField] = {}
for _field in ProfessionalField:
    _FIELD_LOOKUP[field_key(_field.value)] = _field
    _FIELD_LOOKUP[field_key(_field.name)] = _field


def resolve_field(name: str) -> Optional[ProfessionalField]:
    """Resolve free text to a vocabulary field, or None if unrecognized."""
    return _FIELD_LOOKUP.get(field_key(name))


def field_names() -> list[str]:
    """Display names of every recognized field, in declaration order."""
    return [f.value for f in ProfessionalField]
