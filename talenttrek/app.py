"""
TalentTrek API
Job board backend: accounts, profiles, job postings, applications,
resume uploads and skill-based job recommendations.
"""

from datetime import datetime
import json
import logging
import os

from flask import Blueprint, Flask, current_app, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
from werkzeug.utils import secure_filename

from .auth import (
    generate_token,
    hash_password,
    public_user,
    require_auth,
    require_role,
    verify_password,
)
from .config import Config
from .core import (
    CandidateProfile,
    JobPosting,
    JobRecommender,
    SkillExtractor,
    normalize_skills,
    resolve_candidate_skills,
)
from .database import DatabaseError, DatabaseManager, close_db, get_db, is_valid_id, new_id
from .resume import ALLOWED_RESUME_EXTENSIONS, ResumeParseError, file_extension, parse_resume
from .seed import seed_jobs


logger = logging.getLogger(__name__)

ROLES = ('jobseeker', 'recruiter', 'employer')
EMPLOYER_ROLES = ('recruiter', 'employer')
ALLOWED_LOGO_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.gif', '.svg', '.webp'}
MIN_PASSWORD_LENGTH = 6

# Fields of a posting that may arrive as JSON strings in multipart form data
NESTED_JOB_FIELDS = ('location', 'salary', 'type', 'experience_level', 'category')

# Profile fields a job seeker may edit
SEEKER_PROFILE_FIELDS = ('bio', 'preferred_job_types', 'preferred_locations', 'availability')

# Fields accepted by the basic, recruiter, experience and education endpoints
BASIC_PROFILE_FIELDS = ('first_name', 'last_name', 'phone', 'date_of_birth', 'gender',
                        'address', 'social_links')
RECRUITER_PROFILE_FIELDS = ('company_name', 'company_website', 'company_size', 'industry',
                            'company_description', 'position', 'department', 'years_of_experience',
                            'specializations', 'company_address', 'company_founded_year',
                            'company_type', 'bio')
EXPERIENCE_FIELDS = ('company', 'position', 'start_date', 'end_date', 'current', 'description',
                     'location')
EDUCATION_FIELDS = ('institution', 'degree', 'field_of_study', 'start_date', 'end_date', 'gpa',
                    'description')

api = Blueprint('api', __name__, url_prefix='/api')


def create_app(config=None):
    """Build the Flask application."""
    config = config or Config()

    app = Flask(__name__)
    app.config['TALENTTREK'] = config
    app.config['MAX_CONTENT_LENGTH'] = config.max_upload_bytes

    CORS(app, origins=config.cors_origins, supports_credentials=True)

    os.makedirs(config.upload_folder, exist_ok=True)
    with DatabaseManager(config.database_path) as db:
        db.create_schema()

    app.extensions['talenttrek'] = {
        'extractor': SkillExtractor(),
        'recommender': JobRecommender(
            min_score=config.min_match_score,
            limit=config.max_recommendations,
        ),
    }

    app.teardown_appcontext(close_db)
    app.register_blueprint(api)
    register_error_handlers(app)

    logger.info(f"TalentTrek API ready ({config.environment}, db={config.database_path})")
    return app


# ============================================================================
# HELPERS
# ============================================================================

def _config():
    return current_app.config['TALENTTREK']


def _extractor():
    return current_app.extensions['talenttrek']['extractor']


def _recommender():
    return current_app.extensions['talenttrek']['recommender']


def error_response(message, status):
    return jsonify({'success': False, 'message': message}), status


def _request_data():
    """JSON body, or form fields for multipart requests."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _save_upload(content, original_name, prefix):
    """Write uploaded bytes to the upload folder; returns the stored path."""
    timestamp = int(datetime.utcnow().timestamp())
    filename = secure_filename(f"{prefix}_{timestamp}_{new_id()[:8]}_{original_name}")
    path = os.path.join(_config().upload_folder, filename)
    with open(path, 'wb') as f:
        f.write(content)
    return path


def _uploaded_file(field_name):
    file = request.files.get(field_name)
    if file is None or not file.filename:
        return None
    return file


def _job_summary(job):
    if not job:
        return None
    return {
        'id': job['id'],
        'title': job.get('title'),
        'company': job.get('company'),
        'location': job.get('location'),
        'salary': job.get('salary'),
        'type': job.get('type'),
    }


# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@api.route('/auth/signup', methods=['POST'])
def signup():
    """Create a new user account and log it in."""
    data = _request_data()
    name = (data.get('name') or '').strip()
    email = (data.get('email') or '').lower().strip()
    password = data.get('password') or ''
    role = data.get('role') or 'jobseeker'

    if not email or not password:
        return error_response('Email and password required', 400)
    if len(password) < MIN_PASSWORD_LENGTH:
        return error_response(f'Password must be at least {MIN_PASSWORD_LENGTH} characters', 400)
    if role not in ROLES:
        return error_response(f"Role must be one of: {', '.join(ROLES)}", 400)

    db = get_db()
    if db.find_one('users', email=email):
        return error_response('Email already exists', 400)

    now = datetime.utcnow().isoformat()
    user = db.insert('users', {
        'name': name,
        'email': email,
        'password_hash': hash_password(password),
        'role': role,
        'profile': {'skills': [], 'parsed_resume': None},
        'is_active': True,
        'created_at': now,
        'updated_at': now,
    })
    logger.info(f"New {role} account: {email}")

    config = _config()
    return jsonify({
        'success': True,
        'token': generate_token(user, config.jwt_secret, config.jwt_expiry_days),
        'user': public_user(user),
    })


@api.route('/auth/login', methods=['POST'])
def login():
    """Login with email and password."""
    data = _request_data()
    email = (data.get('email') or '').lower().strip()
    password = data.get('password') or ''

    db = get_db()
    user = db.find_one('users', email=email)
    if not user or not verify_password(password, user.get('password_hash')):
        return error_response('Invalid credentials', 400)

    user = db.update('users', user['id'], {'last_login': datetime.utcnow().isoformat()})

    config = _config()
    return jsonify({
        'success': True,
        'token': generate_token(user, config.jwt_secret, config.jwt_expiry_days),
        'user': public_user(user),
    })


@api.route('/auth/me', methods=['GET'])
@require_auth
def get_me():
    return jsonify({'success': True, 'user': public_user(g.user)})


# ============================================================================
# PROFILE ENDPOINTS
# ============================================================================

@api.route('/profile', methods=['GET'])
@require_auth
def get_profile():
    return jsonify({'success': True, 'user': public_user(g.user)})


@api.route('/profile/jobseeker', methods=['PUT'])
@require_auth
def update_jobseeker_profile():
    """Update skills and preferences. Only fields present in the body change."""
    data = _request_data()
    changes = {}

    if 'skills' in data:
        skills = data['skills']
        if isinstance(skills, str):
            skills = skills.split(',')
        if not isinstance(skills, list):
            return error_response('Skills must be a list', 400)
        changes['skills'] = normalize_skills(skills)

    for key in SEEKER_PROFILE_FIELDS:
        if key in data:
            changes[key] = data[key]

    user = get_db().update('users', g.user_id, {'profile': changes})
    return jsonify({
        'success': True,
        'message': 'Job seeker profile updated successfully',
        'user': public_user(user),
    })


@api.route('/profile/skills', methods=['GET'])
@require_auth
def get_profile_skills():
    """Skills used for matching, and whether they came from the profile or a resume."""
    resolved = resolve_candidate_skills(CandidateProfile.from_user(g.user))
    return jsonify({
        'success': True,
        'skills': list(resolved.skills),
        'source': resolved.source.value,
    })


@api.route('/profile/basic', methods=['PUT'])
@require_auth
def update_basic_profile():
    """Update contact details. Only fields present in the body change."""
    data = _request_data()
    for key in ('address', 'social_links'):
        if key in data and not isinstance(data[key], dict):
            return error_response(f'{key} must be an object', 400)

    changes = {'profile': {k: data[k] for k in BASIC_PROFILE_FIELDS if k in data}}
    if isinstance(data.get('name'), str) and data['name'].strip():
        changes['name'] = data['name'].strip()

    user = get_db().update('users', g.user_id, changes)
    return jsonify({
        'success': True,
        'message': 'Basic profile updated successfully',
        'user': public_user(user),
    })


@api.route('/profile/recruiter', methods=['PUT'])
@require_auth
@require_role(*EMPLOYER_ROLES)
def update_recruiter_profile():
    """Update the company profile shown on a recruiter's postings."""
    data = _request_data()
    if 'company_address' in data and not isinstance(data['company_address'], dict):
        return error_response('company_address must be an object', 400)

    recruiter_profile = dict((g.user.get('profile') or {}).get('recruiter_profile') or {})
    recruiter_profile.update({k: data[k] for k in RECRUITER_PROFILE_FIELDS if k in data})

    user = get_db().update('users', g.user_id, {'profile': {'recruiter_profile': recruiter_profile}})
    logger.info(f"Recruiter profile updated for {g.user_id}")
    return jsonify({
        'success': True,
        'message': 'Recruiter profile updated successfully',
        'user': public_user(user),
    })


@api.route('/profile/company-logo', methods=['POST'])
@require_auth
@require_role(*EMPLOYER_ROLES)
def upload_company_logo():
    file = _uploaded_file('company_logo')
    if file is None:
        return error_response('No company logo uploaded', 400)
    if file_extension(file.filename) not in ALLOWED_LOGO_EXTENSIONS:
        return error_response('Logo must be an image file', 400)

    path = _save_upload(file.read(), file.filename, f"company_{g.user_id}")
    recruiter_profile = dict((g.user.get('profile') or {}).get('recruiter_profile') or {})
    recruiter_profile['company_logo'] = path

    user = get_db().update('users', g.user_id, {'profile': {'recruiter_profile': recruiter_profile}})
    return jsonify({
        'success': True,
        'message': 'Company logo updated successfully',
        'company_logo': path,
        'user': public_user(user),
    })


def _profile_entries(section):
    return list((g.user.get('profile') or {}).get(section) or [])


def _add_profile_entry(section, allowed_fields, label):
    entry = {k: v for k, v in _request_data().items() if k in allowed_fields}
    if not entry:
        return error_response(f'No {label} details provided', 400)

    entry['id'] = new_id()
    entries = _profile_entries(section)
    entries.append(entry)

    user = get_db().update('users', g.user_id, {'profile': {section: entries}})
    return jsonify({
        'success': True,
        'message': f'{label.capitalize()} added successfully',
        'entry': entry,
        'user': public_user(user),
    })


@api.route('/profile/experience', methods=['POST'])
@require_auth
def add_experience():
    return _add_profile_entry('experience', EXPERIENCE_FIELDS, 'experience')


@api.route('/profile/experience/<entry_id>', methods=['PUT'])
@require_auth
def update_experience(entry_id):
    entries = _profile_entries('experience')
    entry = next((e for e in entries if e.get('id') == entry_id), None)
    if entry is None:
        return error_response('Experience not found', 404)

    data = _request_data()
    entry.update({k: data[k] for k in EXPERIENCE_FIELDS if k in data})

    user = get_db().update('users', g.user_id, {'profile': {'experience': entries}})
    return jsonify({
        'success': True,
        'message': 'Experience updated successfully',
        'user': public_user(user),
    })


@api.route('/profile/experience/<entry_id>', methods=['DELETE'])
@require_auth
def delete_experience(entry_id):
    entries = _profile_entries('experience')
    remaining = [e for e in entries if e.get('id') != entry_id]
    if len(remaining) == len(entries):
        return error_response('Experience not found', 404)

    user = get_db().update('users', g.user_id, {'profile': {'experience': remaining}})
    return jsonify({
        'success': True,
        'message': 'Experience deleted successfully',
        'user': public_user(user),
    })


@api.route('/profile/education', methods=['POST'])
@require_auth
def add_education():
    return _add_profile_entry('education', EDUCATION_FIELDS, 'education')


@api.route('/user/dashboard', methods=['GET'])
@require_auth
def get_dashboard():
    """Role-specific dashboard statistics."""
    db = get_db()
    user = g.user
    data = {'user': public_user(user)}

    if user.get('role') == 'jobseeker':
        applications = db.find('applications', user_id=user['id'])
        statuses = [a.get('status') for a in applications]
        total = len(applications)
        interviews = statuses.count('interview')
        rejected = statuses.count('rejected')
        data['statistics'] = {
            'total_applications': total,
            'upcoming_interviews': interviews,
            'pending': statuses.count('pending'),
            'rejected': rejected,
            'in_review': total - interviews - rejected,
        }
    else:
        jobs = db.find('jobs', posted_by=user['email'])
        received = sum(db.count('applications', job_id=job['id']) for job in jobs)
        data['statistics'] = {
            'jobs_posted': len(jobs),
            'applications_received': received,
        }

    return jsonify({'success': True, 'data': data})


# ============================================================================
# UPLOAD ENDPOINTS
# ============================================================================

@api.route('/upload/resume', methods=['POST'])
@require_auth
def upload_resume():
    """
    Upload a resume, extract its skills and store them on the profile.
    Explicit profile skills are left untouched; parsed skills are only used
    for matching when no explicit skills exist.
    """
    file = _uploaded_file('resume')
    if file is None:
        return error_response('No file uploaded', 400)

    if file_extension(file.filename) not in ALLOWED_RESUME_EXTENSIONS:
        allowed = ', '.join(sorted(ALLOWED_RESUME_EXTENSIONS))
        return error_response(f'Unsupported file type. Allowed: {allowed}', 400)

    content = file.read()
    logger.info(f"Resume uploaded by {g.user_id}: {file.filename} ({len(content)} bytes)")

    try:
        parsed = parse_resume(file.filename, content, _extractor())
    except ResumeParseError as e:
        logger.warning(f"Resume parse failed for {g.user_id}: {e}")
        return error_response(str(e), 400)

    path = _save_upload(content, file.filename, g.user_id)

    db = get_db()
    db.insert('resumes', {
        'user_id': g.user_id,
        'original_name': file.filename,
        'file_path': path,
        'parsed_data': parsed,
        'uploaded_at': datetime.utcnow().isoformat(),
    })
    db.update('users', g.user_id, {
        'profile': {'resume_path': path, 'parsed_resume': parsed},
    })

    return jsonify({
        'success': True,
        'message': 'Resume uploaded successfully',
        'parsed_data': parsed,
    })


# ============================================================================
# JOB ENDPOINTS
# ============================================================================

def _parse_job_fields(data, from_form=False):
    """
    Validate nested posting fields. Form data carries them as JSON strings,
    which are decoded first. Raises ValueError.
    """
    fields = dict(data)
    if from_form:
        for key in NESTED_JOB_FIELDS:
            value = fields.get(key)
            if isinstance(value, str) and value.strip():
                fields[key] = json.loads(value)
    for key in ('location', 'salary'):
        if fields.get(key) and not isinstance(fields[key], dict):
            raise ValueError(f"{key} must be an object")
    return fields


@api.route('/jobs/upload-logo', methods=['POST'])
@require_auth
@require_role(*EMPLOYER_ROLES)
def upload_logo():
    file = _uploaded_file('logo')
    if file is None:
        return error_response('No logo file uploaded', 400)
    if file_extension(file.filename) not in ALLOWED_LOGO_EXTENSIONS:
        return error_response('Logo must be an image file', 400)

    path = _save_upload(file.read(), file.filename, f"logo_{g.user_id}")
    logger.info(f"Logo uploaded: {file.filename}")
    return jsonify({
        'success': True,
        'message': 'Logo uploaded successfully',
        'logo_path': path,
        'logo_filename': os.path.basename(path),
    })


@api.route('/jobs', methods=['POST'])
@require_auth
@require_role(*EMPLOYER_ROLES)
def create_job():
    """Post a job. Skills are extracted from requirements and description now."""
    try:
        fields = _parse_job_fields(_request_data(), from_form=not request.is_json)
    except ValueError as e:
        logger.warning(f"Invalid job payload: {e}")
        return error_response('Invalid data format', 400)

    title = fields.get('title')
    if title is not None and not isinstance(title, str):
        return error_response('Job title must be text', 400)
    if not (title or '').strip():
        return error_response('Job title is required', 400)

    logo = _uploaded_file('logo')
    if logo is not None and file_extension(logo.filename) not in ALLOWED_LOGO_EXTENSIONS:
        return error_response('Logo must be an image file', 400)

    # set by the server, never by the client
    for key in ('id', 'skills', 'posted_by', 'posted_at'):
        fields.pop(key, None)
    job = JobPosting.from_dict(fields)
    job.title = job.title.strip()
    job.skills = _extractor().extract_from_posting(job.requirements, job.description)
    job.posted_by = g.user['email']
    job.posted_at = datetime.utcnow()
    if logo is not None:
        job.logo = _save_upload(logo.read(), logo.filename, f"logo_{g.user_id}")

    doc = get_db().insert('jobs', job.to_dict())
    logger.info(f"Job posted: {job.title} at {job.company} ({len(job.skills)} skills)")

    return jsonify({'success': True, 'message': 'Job posted successfully', 'job': doc})


@api.route('/jobs', methods=['GET'])
def list_jobs():
    jobs = get_db().find('jobs', sort_by='posted_at', descending=True)
    return jsonify({'success': True, 'jobs': jobs})


@api.route('/jobs/my/jobs', methods=['GET'])
@require_auth
def list_my_jobs():
    jobs = get_db().find('jobs', sort_by='posted_at', descending=True, posted_by=g.user['email'])
    return jsonify({'success': True, 'jobs': jobs})


@api.route('/jobs/<job_id>', methods=['GET'])
def get_job(job_id):
    if not is_valid_id(job_id):
        return error_response('Invalid job ID format', 400)

    job = get_db().get('jobs', job_id)
    if not job:
        logger.info(f"Job not found for ID: {job_id}")
        return error_response('Job not found', 404)

    return jsonify({'success': True, 'job': job})


@api.route('/jobs/<job_id>/applications', methods=['GET'])
@require_auth
def list_job_applications(job_id):
    """Applications for a job, with applicant details. Poster only."""
    if not is_valid_id(job_id):
        return error_response('Invalid job ID format', 400)

    db = get_db()
    job = db.get('jobs', job_id)
    if not job:
        return error_response('Job not found', 404)
    if job.get('posted_by') != g.user['email']:
        return error_response('Access denied. You can only view applications for your own jobs.', 403)

    applications = db.find('applications', sort_by='applied_at', descending=True, job_id=job_id)
    for application in applications:
        applicant = db.get('users', application.get('user_id', ''))
        application['applicant'] = {
            'name': applicant.get('name'),
            'email': applicant.get('email'),
            'profile': applicant.get('profile'),
        } if applicant else None

    return jsonify({'success': True, 'applications': applications})


@api.route('/jobs/clear', methods=['DELETE'])
def clear_jobs():
    """Remove every job (development only)."""
    if _config().is_production:
        return error_response('Clearing jobs not allowed in production', 403)

    deleted = get_db().delete_all('jobs')
    return jsonify({
        'success': True,
        'message': 'All jobs cleared successfully',
        'deleted_count': deleted,
    })


@api.route('/jobs/seed', methods=['POST'])
def seed_sample_jobs():
    """Replace all jobs with sample postings (development only)."""
    if _config().is_production:
        return error_response('Seeding not allowed in production', 403)

    jobs = seed_jobs(get_db(), _extractor())
    return jsonify({
        'success': True,
        'message': 'Sample jobs seeded successfully',
        'count': len(jobs),
    })


# ============================================================================
# APPLICATION ENDPOINTS
# ============================================================================

@api.route('/apply', methods=['POST'])
@require_auth
def apply_to_job():
    """Apply to a job, optionally attaching a resume."""
    data = _request_data()
    job_id = data.get('job_id') or data.get('jobId')

    if not job_id:
        return error_response('Job ID is required', 400)
    if not is_valid_id(job_id):
        return error_response('Invalid job ID format', 400)

    db = get_db()
    if not db.get('jobs', job_id):
        return error_response('Job not found', 404)
    if db.find_one('applications', job_id=job_id, user_id=g.user_id):
        return error_response('Already applied to this job.', 400)

    resume_path = ''
    resume_file_name = ''
    file = _uploaded_file('resume')
    if file is not None:
        if file_extension(file.filename) not in ALLOWED_RESUME_EXTENSIONS:
            return error_response('Unsupported resume file type', 400)
        resume_path = _save_upload(file.read(), file.filename, g.user_id)
        resume_file_name = file.filename
        logger.info(f"Resume uploaded for application: {resume_file_name}")

    db.insert('applications', {
        'job_id': job_id,
        'user_id': g.user_id,
        'applicant_name': data.get('name') or g.user.get('name') or '',
        'applicant_email': data.get('email') or g.user.get('email') or '',
        'cover_letter': data.get('message') or '',
        'resume_path': resume_path,
        'resume_file_name': resume_file_name,
        'applied_at': datetime.utcnow().isoformat(),
        'status': 'pending',
        'stage': 'Resume Screening',
    })

    return jsonify({'success': True, 'message': 'Application submitted!'})


@api.route('/apply/my-applications', methods=['GET'])
@require_auth
def list_my_applications():
    db = get_db()
    applications = db.find('applications', sort_by='applied_at', descending=True, user_id=g.user_id)
    for application in applications:
        application['job'] = _job_summary(db.get('jobs', application.get('job_id', '')))
    return jsonify({'success': True, 'applications': applications})


@api.route('/apply/check/<job_id>', methods=['GET'])
@require_auth
def check_application(job_id):
    existing = get_db().find_one('applications', job_id=job_id, user_id=g.user_id)
    return jsonify({'success': True, 'has_applied': existing is not None})


# ============================================================================
# RECOMMENDATION ENDPOINTS
# ============================================================================

@api.route('/job-recommendations', methods=['GET'])
@require_auth
def get_recommendations():
    """
    Rank all postings against the user's skills.
    Uses explicit profile skills when present, otherwise skills parsed from
    the uploaded resume. Returns an empty list with a message when neither
    exists.
    """
    profile = CandidateProfile.from_user(g.user)

    try:
        jobs = [JobPosting.from_dict(doc) for doc in get_db().find('jobs')]
    except DatabaseError:
        logger.exception(f"Job recommendations error for user {g.user_id}")
        return error_response('Error getting recommendations', 500)

    result = _recommender().recommend(profile, jobs)

    response = {'success': True}
    response.update(result.to_dict())
    return jsonify(response)


# ============================================================================
# HEALTH CHECK
# ============================================================================

@api.route('/health', methods=['GET'])
def health():
    return jsonify({
        'success': True,
        'message': 'TalentTrek API is running',
        'timestamp': datetime.utcnow().isoformat(),
        'environment': _config().environment,
    })


# ============================================================================
# ERROR HANDLERS
# ============================================================================

def register_error_handlers(app):

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({
            'success': False,
            'message': f'Route {request.path} not found',
            'available_endpoints': [
                'GET /api/health',
                'POST /api/auth/signup',
                'POST /api/auth/login',
                'GET /api/jobs',
                'POST /api/jobs',
                'GET /api/job-recommendations',
            ],
        }), 404

    @app.errorhandler(RequestEntityTooLarge)
    def file_too_large(e):
        return error_response(f'File too large. Maximum size is {_config().max_upload_mb}MB.', 413)

    @app.errorhandler(DatabaseError)
    def database_error(e):
        logger.exception(f"Database error on {request.method} {request.path}")
        return error_response('Database error', 500)

    @app.errorhandler(Exception)
    def server_error(e):
        if isinstance(e, HTTPException):
            return error_response(e.description, e.code)

        logger.exception(f"Server error on {request.method} {request.path}")
        body = {'success': False, 'message': 'Internal Server Error'}
        # don't leak error details in production
        if not _config().is_production:
            body['error'] = str(e)
        return jsonify(body), 500
