"""
TalentTrek - job board backend.

Accounts, job postings, applications, resume uploads and a skill-matching
recommender that ranks postings against a candidate's skills.
"""

__version__ = "1.0.0"
