"""Authentication API: login, registration, token refresh and password changes."""
import logging
from flask import Blueprint, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from attendee import limiter
from attendee.services.auth_service import AuthService
from attendee.services.user_service import UserService
from attendee.utils.decorators import admin_required, auth_required, current_user
from attendee.utils.helpers import success_response, error_response
from attendee.utils.validators import require_json

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Email and password login for every role."""
    data = request.get_json(silent=True)

    if not data:
        return error_response("Request body must be JSON", 400)

    email = (data.get("email") or "").strip()
    password = data.get("password") or ""

    if not email or not password:
        return error_response("Email and password are required", 400)

    result, error = AuthService.login(email, password)

    if error:
        return error_response(error, 401)

    return success_response(
        data=result,
        message="Login successful"
    )

@auth_bp.route("/register", methods=["POST"])
@admin_required
def register():
    """Create a user (admin only) and return a token for them."""
    data = require_json(request.get_json(silent=True))
    user = UserService.create_user(data)

    return success_response(
        data=AuthService.issue_tokens(user),
        message="User registered successfully",
        status_code=201
    )

@auth_bp.route("/me", methods=["GET"])
@auth_required
def me():
    """Profile of the authenticated user."""
    return success_response(data={"user": current_user().to_dict()})

@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh():
    """Exchange a refresh token for a new access token."""
    result, error = AuthService.refresh_token(get_jwt_identity())

    if error:
        return error_response(error, 401)

    return success_response(data=result, message="Token refreshed")

@auth_bp.route("/change-password", methods=["POST"])
@auth_required
def change_password():
    data = require_json(request.get_json(silent=True))

    ok, error = AuthService.change_password(
        current_user(),
        data.get("currentPassword"),
        data.get("newPassword")
    )

    if not ok:
        return error_response(error, 400)

    return success_response(message="Password changed successfully")

@auth_bp.route("/logout", methods=["POST"])
@auth_required
def logout():
    """Tokens are stateless; the client discards them."""
    logger.info('User %s logged out', current_user().email)
    return success_response(message="Logged out successfully")
