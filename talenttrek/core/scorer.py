"""Skill overlap scoring between a candidate and a job posting."""

from typing import Iterable, Optional
import math


def normalize_skills(skills: Optional[Iterable[str]]) -> list[str]:
    """
    Clean a list of skills.

    Strips whitespace, drops blanks and collapses duplicates that differ
    only by case. The first spelling seen is kept.
    """
    if not skills:
        return []

    seen = set()
    result = []
    for skill in skills:
        if not isinstance(skill, str):
            continue
        cleaned = skill.strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


def calculate_match_score(candidate_skills: Optional[Iterable[str]],
                          job_skills: Optional[Iterable[str]]) -> float:
    """
    Overlap ratio between two skill sets, in [0, 1].

    The number of shared skills (case-insensitive) divided by the size of
    the larger set. Returns 0.0 when either set is empty.
    """
    candidate = {s.lower() for s in normalize_skills(candidate_skills)}
    job = {s.lower() for s in normalize_skills(job_skills)}

    if not candidate or not job:
        return 0.0

    matched = len(candidate & job)
    return matched / max(len(candidate), len(job))


def match_percentage(score: float) -> int:
    """Score as a whole percentage, rounding halves up."""
    return int(math.floor(score * 100 + 0.5))


def matched_skills(candidate_skills: Optional[Iterable[str]],
                   job_skills: Optional[Iterable[str]]) -> list[str]:
    """Job skills the candidate also has, in the job's order and casing."""
    candidate = {s.lower() for s in normalize_skills(candidate_skills)}
    return [s for s in normalize_skills(job_skills) if s.lower() in candidate]
