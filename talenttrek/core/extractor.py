"""Keyword-based skill extraction from free text."""

from typing import Optional
import logging

from .vocabulary import SkillVocabulary, DEFAULT_VOCABULARY


logger = logging.getLogger(__name__)


class SkillExtractor:
    """
    Finds vocabulary skills mentioned in a blob of text.

    Matching is a case-insensitive substring test, so a short skill can
    match inside a longer word ("Java" in "JavaScript"). Results follow the
    vocabulary's order, not the order of appearance in the text.
    """

    def __init__(self, vocabulary: SkillVocabulary = DEFAULT_VOCABULARY):
        self.vocabulary = vocabulary
        self._lowered = [(skill, skill.lower()) for skill in vocabulary]

    def extract(self, text: Optional[str]) -> list[str]:
        """Return the canonical skills found in text (empty list for no text)."""
        if not text:
            return []

        text_lower = text.lower()
        found = [skill for skill, needle in self._lowered if needle in text_lower]

        logger.debug(f"Extracted {len(found)} skills from {len(text)} characters")
        return found

    def extract_from_posting(self, requirements: Optional[str], description: Optional[str]) -> list[str]:
        """Skills for a job posting, from its requirements and description."""
        return self.extract(f"{requirements or ''} {description or ''}")


_default_extractor = SkillExtractor()


def extract_skills(text: Optional[str]) -> list[str]:
    """Extract skills using the default vocabulary."""
    return _default_extractor.extract(text)
