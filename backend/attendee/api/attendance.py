"""Attendance API: RFID scans, manual corrections, history and daily jobs."""
from flask import Blueprint, current_app, request
from attendee.exceptions import ForbiddenError
from attendee.services.attendance_service import AttendanceQueryService, AttendanceRecorder
from attendee.services.audit_service import LowAttendanceAuditor
from attendee.services.cleanup_service import SessionCleanupJob
from attendee.utils.decorators import auth_required, current_user, elevated_required, optional_auth
from attendee.utils.helpers import get_pagination_args, pagination_meta, success_response
from attendee.utils.timeutils import parse_date

attendance_bp = Blueprint("attendance", __name__)

def _result_response(result):
    return success_response(
        data=result.to_dict(),
        message=result.message,
        status_code=result.status_code
    )

@attendance_bp.route("/", methods=["POST"])
def scan():
    """RFID terminal endpoint: ``{rfidTag, timestamp?}``."""
    data = request.get_json(silent=True) or {}
    result = AttendanceRecorder.record_scan(data.get("rfidTag"), data.get("timestamp"))
    return _result_response(result)

@attendance_bp.route("/manual", methods=["POST"])
@elevated_required
def manual():
    """Manual entry or exit: ``{userId, timestamp, type}``."""
    data = request.get_json(silent=True) or {}
    result = AttendanceRecorder.record_manual(
        data.get("userId"),
        data.get("timestamp"),
        data.get("type"),
        current_user()
    )
    return _result_response(result)

@attendance_bp.route("/today", methods=["GET"])
@optional_auth
def today():
    records = AttendanceQueryService.today(current_user())
    return success_response(data=records)

@attendance_bp.route("/my", methods=["GET"])
@auth_required
def my_attendance():
    page, limit = get_pagination_args()
    result = AttendanceQueryService.for_user(
        current_user().id, page, limit,
        start=request.args.get("startDate"),
        end=request.args.get("endDate")
    )
    return success_response(data={
        "attendance": result["records"],
        "pagination": pagination_meta(page, limit, result["total"])
    })

@attendance_bp.route("/user/<int:user_id>", methods=["GET"])
@auth_required
def user_attendance(user_id):
    viewer = current_user()
    if not viewer.is_elevated() and viewer.id != user_id:
        raise ForbiddenError("Access denied. You can only view your own attendance.")

    page, limit = get_pagination_args()
    result = AttendanceQueryService.for_user(
        user_id, page, limit,
        start=request.args.get("startDate"),
        end=request.args.get("endDate")
    )
    return success_response(data={
        "user": result["user"],
        "attendance": result["records"],
        "pagination": pagination_meta(page, limit, result["total"])
    })

@attendance_bp.route("/history", methods=["GET"])
@elevated_required
def history():
    """History with ``startDate``, ``endDate``, ``userId`` and ``status`` filters."""
    page, limit = get_pagination_args(default_limit=50)
    result = AttendanceQueryService.history(
        page, limit,
        start=request.args.get("startDate"),
        end=request.args.get("endDate"),
        user_id=request.args.get("userId", type=int),
        status=request.args.get("status", "active")
    )
    return success_response(data={
        "attendance": result["records"],
        "pagination": pagination_meta(page, limit, result["total"])
    })

@attendance_bp.route("/stats", methods=["GET"])
@elevated_required
def stats():
    return success_response(data=AttendanceQueryService.stats(
        start=request.args.get("startDate"),
        end=request.args.get("endDate")
    ))

@attendance_bp.route("/<int:record_id>", methods=["DELETE"])
@elevated_required
def delete_record(record_id):
    deleted = AttendanceQueryService.delete(record_id)
    return success_response(
        data={"deletedRecord": deleted},
        message="Attendance record deleted successfully"
    )

@attendance_bp.route("/auto-exit", methods=["POST"])
@elevated_required
def auto_exit():
    """Run the end-of-day cleanup now (a no-op reporting ``skipped`` before the cutoff)."""
    summary = SessionCleanupJob.from_app(current_app._get_current_object()).run()
    return success_response(data=summary.to_dict(), message=summary.message)

@attendance_bp.route("/check-low-attendance", methods=["POST"])
@elevated_required
def check_low_attendance():
    data = request.get_json(silent=True) or {}
    target = parse_date(data["date"]) if data.get("date") else None

    summary = LowAttendanceAuditor.from_app(current_app._get_current_object()).run(target)
    return success_response(data=summary.to_dict(), message=summary.message)
