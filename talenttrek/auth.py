"""Password hashing, JWT tokens and route guards."""

from datetime import datetime, timedelta
from functools import wraps
import hashlib
import hmac
import logging
import secrets

import jwt
from flask import current_app, g, jsonify, request

from .database import get_db


logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100000


def hash_password(password):
    salt = secrets.token_hex(16)
    hashed = hashlib.pbkdf2_hmac('sha256', password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"{salt}${hashed.hex()}"


def verify_password(password, stored):
    if not stored or '$' not in stored:
        return False
    salt, hashed = stored.split('$', 1)
    check = hashlib.pbkdf2_hmac('sha256', password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return hmac.compare_digest(check.hex(), hashed)


def generate_token(user, secret, expiry_days=1):
    return jwt.encode(
        {
            'user_id': user['id'],
            'email': user.get('email'),
            'role': user.get('role'),
            'exp': datetime.utcnow() + timedelta(days=expiry_days),
        },
        secret, algorithm='HS256'
    )


def decode_token(token, secret):
    """Decode a token; raises jwt.InvalidTokenError subclasses on failure."""
    return jwt.decode(token, secret, algorithms=['HS256'])


def public_user(user):
    """User document without the password hash."""
    return {k: v for k, v in user.items() if k != 'password_hash'}


def require_auth(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = request.headers.get('Authorization', '').replace('Bearer ', '').strip()
        if not token:
            return jsonify({'success': False, 'message': 'Access denied. No token provided.'}), 401

        config = current_app.config['TALENTTREK']
        try:
            payload = decode_token(token, config.jwt_secret)
        except jwt.ExpiredSignatureError:
            return jsonify({'success': False, 'message': 'Token expired'}), 401
        except jwt.InvalidTokenError:
            return jsonify({'success': False, 'message': 'Invalid token.'}), 401

        user = get_db().get('users', payload.get('user_id', ''))
        if not user:
            logger.warning(f"Token for unknown user {payload.get('user_id')}")
            return jsonify({'success': False, 'message': 'Invalid token. User not found.'}), 401

        g.user = user
        g.user_id = user['id']
        return f(*args, **kwargs)
    return decorated


def require_role(*roles):
    """Allow only users with one of the given roles. Use after require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if g.user.get('role') not in roles:
                return jsonify({
                    'success': False,
                    'message': f"Access denied. Required role: {' or '.join(roles)}"
                }), 403
            return f(*args, **kwargs)
        return decorated
    return decorator
