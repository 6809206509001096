"""Custom decorators for authentication and authorization."""
from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from attendee import db
from attendee.models.user import User, UserRole, ELEVATED_ROLES
from attendee.utils.helpers import error_response

def _load_user(identity):
    try:
        return db.session.get(User, int(identity))
    except (TypeError, ValueError):
        return None

def current_user() -> User:
    """User resolved by one of the decorators below (``None`` when anonymous)."""
    return g.get('current_user')

def auth_required(f):
    """Require a valid token that belongs to an existing, active user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        user = _load_user(get_jwt_identity())

        if not user:
            return error_response("Token is not valid", 401)

        if not user.is_active:
            return error_response("User account is inactive", 401)

        g.current_user = user
        return f(*args, **kwargs)
    return decorated_function

def optional_auth(f):
    """Resolve the caller when a valid token is sent; continue anonymously otherwise."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = None
        if verify_jwt_in_request(optional=True):
            user = _load_user(get_jwt_identity())
            if user and user.is_active:
                g.current_user = user
        return f(*args, **kwargs)
    return decorated_function

def admin_required(f):
    """Decorator to require admin role."""
    @wraps(f)
    @auth_required
    def decorated_function(*args, **kwargs):
        if current_user().role != UserRole.ADMIN:
            return error_response("Access denied. Admin role required.", 403)

        return f(*args, **kwargs)
    return decorated_function

def elevated_required(f):
    """Decorator to require admin or mentor role."""
    @wraps(f)
    @auth_required
    def decorated_function(*args, **kwargs):
        if current_user().role not in ELEVATED_ROLES:
            return error_response("Access denied. Admin or Mentor role required.", 403)

        return f(*args, **kwargs)
    return decorated_function
