"""
Prompt templates for CV analysis and candidate-job matching.
"""

from typing import Iterable, Sequence

from shared.fields import field_names
from shared.models import CandidateProjectView


class InvalidInputError(ValueError):
    """Raised when a prompt cannot be built from the given input."""


CV_ANALYSIS_TEMPLATE = """You are an experienced technical recruiter. Read the CV below and estimate how many years of professional experience the candidate has in each of the recognized fields.

Recognized fields (use these names exactly, and no others):
{fields}

Rules:
1. Only list fields where the CV shows real experience.
2. Years must be whole numbers (round down, minimum 0). Never write "years", ranges or decimals.
3. List each field at most once.
4. Output format: field,years,field,years,... on a single line.
5. Output ONLY that comma-separated line. No explanations, no markdown, no other text.
6. If the CV shows no experience in any recognized field, output nothing.

Example output:
Software Development,3,Cloud Computing,2

## CV:
{cv_text}"""


MATCH_TEMPLATE = """You are an expert technical recruiter evaluating a candidate's public projects against a job's required skills.

## Candidate Projects:
{projects}

## Required Skills:
{skills}

## Task:
1. For each project, infer the technologies actually used, based on its name and repository.
2. Compute a weighted skill match: skills demonstrated in several projects or as a core technology weigh more than incidental use.
3. Classify every required skill as matched or missing. A skill cannot be both.
4. Give a compatibility score from 0 to 100 (integer).

Respond with a single JSON object and nothing else, using exactly these keys:

{{"compatibility_score": <integer 0-100>, "matched_skills": ["<skill>", ...], "missing_skills": ["<skill>", ...], "summary": "<2-3 sentence explanation>"}}"""


def build_cv_analysis_prompt(cv_text: str) -> str:
    """
    Build the field-experience prompt for a CV.

    Empty text still yields a valid prompt; the model is expected to answer
    with an empty line.
    """
    fields = "\n".join(f"- {name}" for name in field_names())
    return CV_ANALYSIS_TEMPLATE.format(fields=fields, cv_text=cv_text.strip())


def _format_project(project: CandidateProjectView) -> str:
    link = project.link or "(no link)"
    return f"- {project.name}: {link}"


def build_match_prompt(
    projects: Sequence[CandidateProjectView],
    required_skills: Iterable[str],
) -> str:
    """
    Build the compatibility prompt for a candidate's projects.

    Args:
        projects: Projects already filtered to those relevant to the job
        required_skills: The job's required skills

    Raises:
        InvalidInputError: If there are no projects to match against
    """
    if not projects:
        raise InvalidInputError("Cannot build a match prompt without projects")

    project_lines = "\n".join(_format_project(p) for p in projects)
    skills = ", ".join(sorted(required_skills, key=str.lower)) or "(none listed)"
    return MATCH_TEMPLATE.format(projects=project_lines, skills=skills)
