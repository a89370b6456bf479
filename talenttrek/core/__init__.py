"""Core matching logic: vocabulary, extraction, scoring and recommendations."""

from .vocabulary import SkillVocabulary, COMMON_SKILLS, DEFAULT_VOCABULARY
from .extractor import SkillExtractor, extract_skills
from .scorer import calculate_match_score, match_percentage, matched_skills, normalize_skills
from .models import (
    JobPosting,
    CandidateProfile,
    MatchResult,
    Recommendations,
    ResolvedSkills,
    SkillSource,
)
from .recommender import JobRecommender, resolve_candidate_skills

__all__ = [
    "SkillVocabulary",
    "COMMON_SKILLS",
    "DEFAULT_VOCABULARY",
    "SkillExtractor",
    "extract_skills",
    "calculate_match_score",
    "match_percentage",
    "matched_skills",
    "normalize_skills",
    "JobPosting",
    "CandidateProfile",
    "MatchResult",
    "Recommendations",
    "ResolvedSkills",
    "SkillSource",
    "JobRecommender",
    "resolve_candidate_skills",
]
