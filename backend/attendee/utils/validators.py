"""Validation utilities for the application."""
import re
from typing import Any, Dict, List, Optional

from attendee.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        return bool(EMAIL_PATTERN.match(email))

    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """Validate password strength."""
        errors = []

        if not password:
            errors.append("Password is required")
        elif len(password) < 6:
            errors.append("Password must be at least 6 characters long")
        elif len(password) > 128:
            errors.append("Password is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_name(name: str) -> Dict[str, Any]:
        """Validate user name."""
        errors = []

        if not name or not name.strip():
            errors.append("Name is required")
        elif len(name.strip()) < 2:
            errors.append("Name must be at least 2 characters long")
        elif len(name.strip()) > 100:
            errors.append("Name is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_rfid_tag(tag: str) -> Dict[str, Any]:
        """RFID tags are short alphanumeric strings."""
        errors = []

        if not tag or not str(tag).strip():
            errors.append("RFID tag is required")
        elif not re.match(r'^[A-Za-z0-9:_-]{1,64}$', str(tag).strip()):
            errors.append("RFID tag may only contain letters, digits, ':', '_' and '-'")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            if field not in data or data[field] in (None, ''):
                errors.append(f"{field} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

def ensure(result: Dict[str, Any]) -> None:
    """Raise ``ValidationError`` carrying the collected messages of a failed check."""
    if not result["is_valid"]:
        raise ValidationError(result["errors"][0], payload={"errors": result["errors"]})

def require_json(data: Optional[dict]) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be JSON")
    return data
