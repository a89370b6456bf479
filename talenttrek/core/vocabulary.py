"""Curated skill vocabulary used for keyword extraction."""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional


COMMON_SKILLS = (
    # Languages
    "JavaScript", "Python", "Java",
    # Frameworks & databases
    "React", "Node.js", "MongoDB", "SQL",
    # Cloud & tooling
    "AWS", "Docker", "Kubernetes", "Git",
    # Web
    "HTML", "CSS", "TypeScript", "Angular", "Vue.js", "Express",
    "Django", "Flask", "Spring Boot",
    "PostgreSQL", "MySQL", "Redis", "GraphQL", "REST API",
    # Data
    "Machine Learning", "Data Science",
    # Process
    "DevOps", "CI/CD", "Agile", "Scrum", "Project Management",
)


@dataclass(frozen=True)
class SkillVocabulary:
    """
    Ordered, immutable set of canonical skill names.

    Entries keep their canonical casing for display; lookups are
    case-insensitive. Duplicate entries (ignoring case) are rejected.
    """
    skills: tuple[str, ...]

    def __post_init__(self):
        cleaned = tuple(s.strip() for s in self.skills)
        seen = set()
        for skill in cleaned:
            if not skill:
                raise ValueError("Skill vocabulary entries must not be empty")
            key = skill.lower()
            if key in seen:
                raise ValueError(f"Duplicate skill in vocabulary: {skill!r}")
            seen.add(key)
        # frozen dataclass, so bypass __setattr__
        object.__setattr__(self, "skills", cleaned)

    @classmethod
    def from_iterable(cls, skills: Iterable[str]) -> "SkillVocabulary":
        return cls(tuple(skills))

    def __iter__(self) -> Iterator[str]:
        return iter(self.skills)

    def __len__(self) -> int:
        return len(self.skills)

    def __contains__(self, skill: object) -> bool:
        return isinstance(skill, str) and self.canonical(skill) is not None

    def canonical(self, skill: str) -> Optional[str]:
        """Return the canonical spelling of a skill, or None if unknown."""
        key = skill.strip().lower()
        for entry in self.skills:
            if entry.lower() == key:
                return entry
        return None


DEFAULT_VOCABULARY = SkillVocabulary(COMMON_SKILLS)
