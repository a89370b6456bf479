"""
Resume text extraction and parsing.

Reads text from an uploaded resume (PDF via pdfplumber, or plain text) and
picks out the vocabulary skills it mentions.
"""

from datetime import datetime
import io
import logging
import os

import pdfplumber

from .core import SkillExtractor


logger = logging.getLogger(__name__)

ALLOWED_RESUME_EXTENSIONS = {'.pdf', '.txt'}
SUMMARY_LENGTH = 300


class ResumeParseError(Exception):
    """Raised when text cannot be read from an uploaded resume."""


def file_extension(filename):
    return os.path.splitext(filename or '')[1].lower()


def extract_text_from_pdf(pdf_bytes):
    """Extract text content from PDF bytes."""
    text_parts = []
    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)
    except Exception as e:
        # pdfplumber raises several unrelated types for corrupt files
        raise ResumeParseError(f"Could not read PDF: {e}") from e
    return '\n'.join(text_parts)


def extract_text(filename, content):
    """Text of a resume file, chosen by extension."""
    ext = file_extension(filename)
    if ext == '.pdf':
        return extract_text_from_pdf(content)
    if ext == '.txt':
        return content.decode('utf-8', errors='replace')
    raise ResumeParseError(f"Unsupported resume type: {ext or 'unknown'}")


def build_summary(text):
    """First few lines of the resume, collapsed to one paragraph."""
    words = ' '.join(line.strip() for line in text.splitlines() if line.strip())
    if len(words) <= SUMMARY_LENGTH:
        return words
    return words[:SUMMARY_LENGTH].rsplit(' ', 1)[0] + '...'


def parse_resume(filename, content, extractor=None):
    """
    Parse an uploaded resume.

    Args:
        filename: Original file name (used to pick the reader)
        content: Raw file bytes
        extractor: SkillExtractor to use (default vocabulary if omitted)

    Returns:
        Dict with skills, summary, character count and parse time
    """
    extractor = extractor or SkillExtractor()
    text = extract_text(filename, content)
    skills = extractor.extract(text)

    logger.info(f"Parsed resume {filename}: {len(text)} characters, {len(skills)} skills")

    return {
        'skills': skills,
        'summary': build_summary(text),
        'text_length': len(text),
        'parsed_at': datetime.utcnow().isoformat(),
    }
