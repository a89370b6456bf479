"""Sample job postings for local development."""

from datetime import datetime
import logging

from .core import JobPosting, SkillExtractor


logger = logging.getLogger(__name__)

SAMPLE_JOBS = [
    {
        "title": "Full Stack Developer",
        "company": "TechCorp",
        "location": {"country": "India", "city": "Bangalore"},
        "salary": {"min": "800000", "max": "1400000"},
        "type": ["Full Time"],
        "experience_level": ["Mid Level"],
        "category": ["Development"],
        "description": "Build customer-facing features across a React front end and Node.js services.",
        "requirements": "3+ years with React, Node.js and MongoDB. Familiarity with Docker and Git.",
    },
    {
        "title": "Backend Engineer",
        "company": "FinStack",
        "location": {"country": "India", "city": "Pune"},
        "salary": {"min": "1200000", "max": "2000000"},
        "type": ["Full Time"],
        "experience_level": ["Senior"],
        "category": ["Development"],
        "description": "Own payment services written in Java with Spring Boot on AWS.",
        "requirements": "Spring Boot, PostgreSQL, Redis, Kubernetes and CI/CD pipelines.",
    },
    {
        "title": "Data Scientist",
        "company": "InsightLabs",
        "location": {"country": "India", "city": "Hyderabad"},
        "salary": {"min": "1000000", "max": "1800000"},
        "type": ["Full Time", "Remote"],
        "experience_level": ["Mid Level"],
        "category": ["Data"],
        "description": "Design experiments and ship Machine Learning models to production.",
        "requirements": "Python, SQL, Data Science fundamentals and Django for internal tools.",
    },
    {
        "title": "Frontend Intern",
        "company": "PixelWorks",
        "location": {"country": "India", "city": "Bangalore"},
        "salary": {"min": "20000", "max": "30000"},
        "type": ["Internship"],
        "experience_level": ["Freshers"],
        "category": ["Development"],
        "description": "Help build our design system with TypeScript and Vue.js.",
        "requirements": "HTML, CSS and some exposure to Agile teams.",
    },
]


def build_sample_jobs(extractor=None, posted_by="seed@talenttrek.dev"):
    """Sample postings with skills extracted the same way as real ones."""
    extractor = extractor or SkillExtractor()
    jobs = []
    for data in SAMPLE_JOBS:
        job = JobPosting.from_dict(data)
        job.skills = extractor.extract_from_posting(job.requirements, job.description)
        job.posted_by = posted_by
        job.posted_at = datetime.utcnow()
        jobs.append(job)
    return jobs


def seed_jobs(db, extractor=None):
    """Replace all jobs with the sample set. Returns the stored documents."""
    logger.info("Seeding sample jobs...")
    db.delete_all("jobs")
    inserted = db.insert_many("jobs", [job.to_dict() for job in build_sample_jobs(extractor)])
    logger.info(f"Seeded {len(inserted)} jobs")
    return inserted
