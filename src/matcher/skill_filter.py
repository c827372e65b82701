"""
Skill-overlap pre-filter. Runs before any generation call.
"""

from typing import Iterable, Sequence

from shared.models import CandidateProjectView, normalize_skill


def skill_keys(skills: Iterable[str]) -> set[str]:
    """Normalized, non-empty skill names."""
    return {normalize_skill(skill) for skill in skills if skill and skill.strip()}


def overlapping_skills(project: CandidateProjectView, required_skills: Iterable[str]) -> set[str]:
    """Declared skills of a project that the job requires (as declared)."""
    required = skill_keys(required_skills)
    return {skill for skill in project.declared_skills if normalize_skill(skill) in required}


def filter_relevant_projects(
    projects: Sequence[CandidateProjectView],
    required_skills: Iterable[str],
) -> list[CandidateProjectView]:
    """Projects sharing at least one skill with the job, in original order."""
    required = skill_keys(required_skills)
    if not required:
        return []
    return [
        project
        for project in projects
        if skill_keys(project.declared_skills) & required
    ]
