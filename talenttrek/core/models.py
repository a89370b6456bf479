"""Data models for postings, candidates and match results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .scorer import normalize_skills


DEFAULT_COUNTRY = "India"
DEFAULT_CITY = "Bangalore"
DEFAULT_JOB_TYPE = "Full Time"
DEFAULT_EXPERIENCE_LEVEL = "Freshers"
DEFAULT_CATEGORY = "Development"


class SkillSource(Enum):
    """Where a candidate's skills were taken from."""
    EXPLICIT = "explicit"
    RESUME = "resume"
    NONE = "none"


def _as_list(value, default: str) -> list[str]:
    if value is None or value == "" or value == []:
        return [default]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _parse_datetime(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if value:
        return datetime.fromisoformat(value)
    return None


@dataclass
class JobPosting:
    """A job posting. `skills` is filled in once, when the posting is created."""
    title: str = ""
    company: str = ""
    country: str = DEFAULT_COUNTRY
    city: str = DEFAULT_CITY
    salary_min: str = ""
    salary_max: str = ""
    job_type: list[str] = field(default_factory=lambda: [DEFAULT_JOB_TYPE])
    experience_level: list[str] = field(default_factory=lambda: [DEFAULT_EXPERIENCE_LEVEL])
    category: list[str] = field(default_factory=lambda: [DEFAULT_CATEGORY])
    description: str = ""
    requirements: str = ""
    company_website: str = ""
    logo: Optional[str] = None
    skills: list[str] = field(default_factory=list)
    posted_by: str = ""
    posted_at: datetime = field(default_factory=datetime.utcnow)
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "JobPosting":
        location = data.get("location") or {}
        salary = data.get("salary") or {}
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            company=data.get("company") or "",
            country=location.get("country") or DEFAULT_COUNTRY,
            city=location.get("city") or DEFAULT_CITY,
            salary_min=str(salary.get("min") or ""),
            salary_max=str(salary.get("max") or ""),
            job_type=_as_list(data.get("type"), DEFAULT_JOB_TYPE),
            experience_level=_as_list(data.get("experience_level"), DEFAULT_EXPERIENCE_LEVEL),
            category=_as_list(data.get("category"), DEFAULT_CATEGORY),
            description=data.get("description") or "",
            requirements=data.get("requirements") or "",
            company_website=data.get("company_website") or "",
            logo=data.get("logo"),
            skills=normalize_skills(data.get("skills")),
            posted_by=data.get("posted_by") or "",
            posted_at=_parse_datetime(data.get("posted_at")) or datetime.utcnow(),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": {"country": self.country, "city": self.city},
            "salary": {"min": self.salary_min, "max": self.salary_max},
            "type": self.job_type,
            "experience_level": self.experience_level,
            "category": self.category,
            "description": self.description,
            "requirements": self.requirements,
            "company_website": self.company_website,
            "logo": self.logo,
            "skills": self.skills,
            "posted_by": self.posted_by,
            "posted_at": self.posted_at.isoformat(),
        }


@dataclass
class CandidateProfile:
    """The parts of a job seeker's profile that matter for matching."""
    user_id: Optional[str] = None
    explicit_skills: list[str] = field(default_factory=list)
    parsed_resume_skills: list[str] = field(default_factory=list)

    @classmethod
    def from_user(cls, user: dict) -> "CandidateProfile":
        profile = user.get("profile") or {}
        parsed_resume = profile.get("parsed_resume") or {}
        return cls(
            user_id=user.get("id"),
            explicit_skills=normalize_skills(profile.get("skills")),
            parsed_resume_skills=normalize_skills(parsed_resume.get("skills")),
        )


@dataclass(frozen=True)
class ResolvedSkills:
    """Candidate skills together with the source they were taken from."""
    skills: tuple[str, ...]
    source: SkillSource

    @property
    def is_empty(self) -> bool:
        return not self.skills


@dataclass
class MatchResult:
    """A posting scored against a candidate. Never persisted."""
    job: JobPosting
    score: float
    percentage: int
    matched_skills: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = self.job.to_dict()
        data["match_score"] = self.score
        data["match_percentage"] = self.percentage
        data["matched_skills"] = self.matched_skills
        return data


@dataclass
class Recommendations:
    """Ranked matches plus the skills they were computed from."""
    results: list[MatchResult]
    candidate_skills: list[str]
    source: SkillSource
    message: Optional[str] = None

    @property
    def has_profile_data(self) -> bool:
        return self.source is not SkillSource.NONE

    def to_dict(self) -> dict:
        data = {
            "recommendations": [r.to_dict() for r in self.results],
            "user_skills": self.candidate_skills,
            "skill_source": self.source.value,
        }
        if self.message:
            data["message"] = self.message
        return data
