"""User management API."""
from flask import Blueprint, request
from attendee.exceptions import ForbiddenError
from attendee.services.user_service import UserService
from attendee.utils.decorators import admin_required, auth_required, current_user, elevated_required
from attendee.utils.helpers import get_pagination_args, pagination_meta, success_response
from attendee.utils.validators import require_json

users_bp = Blueprint("users", __name__)

@users_bp.route("/", methods=["GET"])
@admin_required
def list_users():
    """List users with optional ``status``, ``role`` and ``search`` filters."""
    page, limit = get_pagination_args(default_limit=10)
    pagination = UserService.list_users(
        page,
        limit,
        status=request.args.get("status"),
        role=request.args.get("role"),
        search=request.args.get("search")
    )

    return success_response(
        data={
            "users": [user.to_dict() for user in pagination.items],
            "pagination": pagination_meta(page, limit, pagination.total)
        }
    )

@users_bp.route("/", methods=["POST"])
@admin_required
def create_user():
    data = require_json(request.get_json(silent=True))
    user = UserService.create_user(data)

    return success_response(
        data={"user": user.to_dict()},
        message="User created successfully",
        status_code=201
    )

@users_bp.route("/me", methods=["GET"])
@auth_required
def get_me():
    return success_response(data={"user": current_user().to_dict()})

@users_bp.route("/me", methods=["PUT"])
@auth_required
def update_me():
    data = require_json(request.get_json(silent=True))
    user = UserService.update_profile(current_user(), data)

    return success_response(data={"user": user.to_dict()}, message="Profile updated successfully")

@users_bp.route("/stats/summary", methods=["GET"])
@elevated_required
def stats_summary():
    return success_response(data=UserService.summary_stats())

@users_bp.route("/<int:user_id>", methods=["GET"])
@auth_required
def get_user(user_id):
    """Admins may read anyone; other users only themselves."""
    viewer = current_user()
    if not viewer.is_admin() and viewer.id != user_id:
        raise ForbiddenError("Access denied. You can only view your own profile.")

    user = UserService.get_user(user_id)
    return success_response(data={"user": user.to_dict()})

@users_bp.route("/<int:user_id>", methods=["PUT"])
@admin_required
def update_user(user_id):
    data = require_json(request.get_json(silent=True))
    user = UserService.update_user(UserService.get_user(user_id), data)

    return success_response(data={"user": user.to_dict()}, message="User updated successfully")

@users_bp.route("/<int:user_id>", methods=["DELETE"])
@admin_required
def delete_user(user_id):
    deleted = UserService.delete_user(UserService.get_user(user_id), current_user())

    return success_response(data={"deletedUser": deleted}, message="User deleted successfully")

@users_bp.route("/<int:user_id>/status", methods=["PUT"])
@admin_required
def set_status(user_id):
    data = require_json(request.get_json(silent=True))
    user = UserService.set_status(UserService.get_user(user_id), data.get("status"), current_user())

    verb = "activated" if user.is_active else "deactivated"
    return success_response(data={"user": user.to_dict()}, message=f"User {verb} successfully")
