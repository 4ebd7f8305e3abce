# Overview: Flask API routes for attendance operations; parses input and returns JSON responses.

# backend/greenverse/routes/attendance.py
from flask import Blueprint, request, g

from ..services import attendance_service
from ..roles import Role
from ..decorators import require_auth, require_role


attendance_bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")


@attendance_bp.get("")
@attendance_bp.get("/")
@require_auth
def list_attendance():
    records = attendance_service.list_attendance(g.current_user)
    return {"attendance": [r.to_dict() for r in records]}


@attendance_bp.get("/date/<day>")
@require_auth
def list_attendance_for_date(day: str):
    records = attendance_service.list_attendance(g.current_user, day)
    return {"attendance": [r.to_dict() for r in records], "date": day}


@attendance_bp.post("")
@attendance_bp.post("/")
@require_auth
@require_role(Role.CLUSTER)
def mark_attendance_route():
    data = request.get_json(silent=True) or {}
    record = attendance_service.mark_attendance(user=g.current_user, payload=data)
    return {"message": "Attendance marked successfully", "attendance": record.to_dict()}, 201


@attendance_bp.post("/bulk")
@require_auth
@require_role(Role.CLUSTER)
def bulk_attendance_route():
    """Replace the caller's attendance for each date present in attendanceRecords."""
    data = request.get_json(silent=True) or {}
    records = attendance_service.bulk_mark(user=g.current_user, records=data.get("attendanceRecords"))
    return {
        "message": "Attendance marked successfully",
        "attendance": [r.to_dict() for r in records],
        "count": len(records),
    }, 201


@attendance_bp.get("/stats")
@require_auth
def attendance_stats():
    return attendance_service.attendance_stats(g.current_user, request.args.get("date"))
