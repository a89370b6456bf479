"""
Skill-based job recommendations.

Flow for one request:
1. Resolve the candidate's skills (explicit list, else parsed resume)
2. Score every posting against them
3. Keep postings above the minimum score
4. Sort by score (stable, so ties keep input order)
5. Return the top N
"""

from typing import Iterable
import logging

from .models import (
    CandidateProfile,
    JobPosting,
    MatchResult,
    Recommendations,
    ResolvedSkills,
    SkillSource,
)
from .scorer import calculate_match_score, match_percentage, matched_skills


logger = logging.getLogger(__name__)

NO_PROFILE_DATA_MESSAGE = "No resume or skills added yet"
NO_MATCHES_MESSAGE = "No matching jobs found"


def resolve_candidate_skills(profile: CandidateProfile) -> ResolvedSkills:
    """Pick the candidate's skills in priority order: explicit, then resume."""
    if profile.explicit_skills:
        return ResolvedSkills(tuple(profile.explicit_skills), SkillSource.EXPLICIT)
    if profile.parsed_resume_skills:
        return ResolvedSkills(tuple(profile.parsed_resume_skills), SkillSource.RESUME)
    return ResolvedSkills((), SkillSource.NONE)


class JobRecommender:
    """Ranks job postings for a candidate by skill overlap."""

    DEFAULT_MIN_SCORE = 0.1
    DEFAULT_LIMIT = 10

    def __init__(self, min_score: float = DEFAULT_MIN_SCORE, limit: int = DEFAULT_LIMIT):
        if limit < 0:
            raise ValueError("limit must not be negative")
        self.min_score = min_score
        self.limit = limit

    def score_jobs(self, skills: Iterable[str], jobs: Iterable[JobPosting]) -> list[MatchResult]:
        """Score every job, in input order, without filtering."""
        skills = list(skills)
        results = []
        for job in jobs:
            score = calculate_match_score(skills, job.skills)
            results.append(MatchResult(
                job=job,
                score=score,
                percentage=match_percentage(score),
                matched_skills=matched_skills(skills, job.skills),
            ))
        return results

    def recommend(self, profile: CandidateProfile, jobs: Iterable[JobPosting]) -> Recommendations:
        resolved = resolve_candidate_skills(profile)

        if resolved.is_empty:
            logger.info(f"No skills for user {profile.user_id}, skipping scoring")
            return Recommendations(
                results=[],
                candidate_skills=[],
                source=SkillSource.NONE,
                message=NO_PROFILE_DATA_MESSAGE,
            )

        scored = self.score_jobs(resolved.skills, jobs)

        # strictly greater: a score equal to the threshold is dropped
        matches = [m for m in scored if m.score > self.min_score]
        matches.sort(key=lambda m: m.score, reverse=True)
        top = matches[:self.limit]

        logger.info(
            f"User {profile.user_id}: scored {len(scored)} jobs, "
            f"{len(matches)} above {self.min_score}, returning {len(top)} "
            f"(skills from {resolved.source.value})"
        )

        return Recommendations(
            results=top,
            candidate_skills=list(resolved.skills),
            source=resolved.source,
            message=None if top else NO_MATCHES_MESSAGE,
        )
