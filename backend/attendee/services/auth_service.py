"""Authentication service for user management."""
import logging
from typing import Optional, Tuple
from flask_jwt_extended import create_access_token, create_refresh_token
from attendee import db
from attendee.models.user import User
from attendee.utils.validators import Validator

logger = logging.getLogger(__name__)

class AuthService:
    @staticmethod
    def issue_tokens(user: User) -> dict:
        """Access and refresh tokens for a user (identity is the user id)."""
        identity = str(user.id)
        return {
            "token": create_access_token(identity=identity),
            "refresh_token": create_refresh_token(identity=identity),
            "user": user.to_dict()
        }

    @staticmethod
    def login(email: str, password: str) -> Tuple[Optional[dict], Optional[str]]:
        """Authenticate user and return tokens."""
        # Validate input
        if not email or not password:
            return None, "Email and password are required"

        email = email.lower().strip()
        if not Validator.validate_email(email):
            return None, "Invalid email format"

        # Find user
        user = User.query.filter_by(email=email).first()

        if not user or not user.check_password(password):
            logger.info('Failed login for %s', email)
            return None, "Invalid email or password"

        # Check if account is active
        if not user.is_active:
            return None, "Account is inactive. Contact an administrator."

        logger.info('User %s logged in', user.email)
        return AuthService.issue_tokens(user), None

    @staticmethod
    def refresh_token(identity) -> Tuple[Optional[dict], Optional[str]]:
        """Generate new access token."""
        try:
            user = db.session.get(User, int(identity))
        except (TypeError, ValueError):
            user = None
        if not user or not user.is_active:
            return None, "User not found or inactive"

        return {
            "token": create_access_token(identity=str(user.id)),
            "user": user.to_dict()
        }, None

    @staticmethod
    def change_password(user: User, current_password: str, new_password: str) -> Tuple[bool, Optional[str]]:
        """Change password after verifying the current one."""
        if not current_password or not new_password:
            return False, "Current and new password are required"

        if not user.check_password(current_password):
            return False, "Current password is incorrect"

        check = Validator.validate_password(new_password)
        if not check["is_valid"]:
            return False, check["errors"][0]

        user.set_password(new_password)
        db.session.commit()
        logger.info('Password changed for %s', user.email)
        return True, None
