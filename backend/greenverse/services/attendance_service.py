# Overview: Service-layer operations for attendance; single marks, bulk day replacement and stats.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..errors import Forbidden, InvalidInput
from ..extensions import db
from ..models import ATTENDANCE_STATUSES, SHIFTS, Attendance, Employee, User
from ..time_utils import parse_iso_date, parse_optional_date, to_iso_date, today
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_with_retry
from .scope_service import require_cluster_id, scope_query

ATTENDANCE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"worker_name", "status", "date", "shift", "employee_id"}),
    required_on_create=frozenset({"worker_name", "status", "date"}),
    choices={"status": frozenset(ATTENDANCE_STATUSES), "shift": frozenset(SHIFTS)},
)


def list_attendance(user: User, day=None) -> list[Attendance]:
    query = scope_query(db.session.query(Attendance), Attendance, user)
    if day is not None:
        query = query.filter(Attendance.date == parse_iso_date(day))
    return query.order_by(Attendance.date.desc(), Attendance.worker_name.asc()).all()


def _check_employees(cluster_id: str, employee_ids: set[str]) -> None:
    """Every referenced employee must exist and belong to cluster_id."""
    if not employee_ids:
        return
    owned = {
        row[0]
        for row in db.session.query(Employee.id).filter(
            Employee.id.in_(employee_ids), Employee.cluster_id == cluster_id
        )
    }
    foreign = sorted(employee_ids - owned)
    if foreign:
        raise Forbidden("Employees do not belong to your cluster", details={"employee_ids": foreign})


def mark_attendance(*, user: User, payload: dict) -> Attendance:
    cluster_id = require_cluster_id(user)
    patch = validate_payload(model=Attendance, payload=payload, policy=ATTENDANCE_POLICY, partial=False)
    if patch.get("employee_id"):
        _check_employees(cluster_id, {patch["employee_id"]})

    def _op():
        record = Attendance(cluster_id=cluster_id, **patch)
        db.session.add(record)
        db.session.commit()
        return record

    return run_with_retry(_op)


def bulk_mark(*, user: User, records) -> list[Attendance]:
    """
    Replace the caller's cluster attendance for every date in records.

    For each distinct date, existing rows of the cluster on that date are
    deleted and the submitted rows inserted, all in one transaction.
    """
    cluster_id = require_cluster_id(user)
    if not isinstance(records, list) or not records:
        raise InvalidInput("Attendance records are required")

    patches = []
    for index, raw in enumerate(records):
        if not isinstance(raw, dict):
            raise InvalidInput(f"attendanceRecords[{index}] must be an object")
        try:
            patches.append(validate_payload(
                model=Attendance, payload=raw, policy=ATTENDANCE_POLICY, partial=False,
            ))
        except InvalidInput as e:
            raise InvalidInput(f"attendanceRecords[{index}]: {e.message}")

    _check_employees(cluster_id, {p["employee_id"] for p in patches if p.get("employee_id")})
    dates = sorted({p["date"] for p in patches})

    def _op():
        db.session.query(Attendance).filter(
            Attendance.cluster_id == cluster_id,
            Attendance.date.in_(dates),
        ).delete(synchronize_session=False)
        created = [Attendance(cluster_id=cluster_id, **p) for p in patches]
        db.session.add_all(created)
        db.session.commit()
        return created

    created = run_with_retry(_op)
    current_app.logger.info(
        "Attendance replaced: cluster=%s dates=%s rows=%d",
        cluster_id, ",".join(to_iso_date(d) for d in dates), len(created),
    )
    return created


def attendance_stats(user: User, day=None) -> dict:
    target = parse_optional_date(day) or today()
    query = scope_query(
        db.session.query(Attendance.status, func.count(Attendance.id)),
        Attendance,
        user,
    ).filter(Attendance.date == target).group_by(Attendance.status)
    counts = {status: int(n) for status, n in query.all()}

    total = sum(counts.values())
    present = counts.get("Present", 0)
    return {
        "date": to_iso_date(target),
        "total": total,
        "present": present,
        "absent": counts.get("Absent", 0),
        "leave": counts.get("Leave", 0),
        "presentPercentage": round(present / total * 100) if total else 0,
    }
