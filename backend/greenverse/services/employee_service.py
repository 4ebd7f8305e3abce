# Overview: Service-layer operations for employees and the HR dashboard views.

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from ..errors import NotFound
from ..extensions import db
from ..models import Attendance, Cluster, Employee, User
from ..time_utils import add_months, parse_optional_date, to_iso_date, today
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_with_retry
from .scope_service import ensure_own_cluster, scope_query

EMPLOYEE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "city", "role", "cluster_id"}),
    required_on_create=frozenset({"name", "city", "role", "cluster_id"}),
)


def _get_employee(employee_id: str) -> Employee:
    employee = db.session.get(Employee, employee_id)
    if employee is None:
        raise NotFound("Employee not found")
    return employee


def _require_cluster(cluster_id: str) -> None:
    if db.session.get(Cluster, cluster_id) is None:
        raise NotFound("Cluster not found")


def list_employees(user: User) -> list[Employee]:
    query = scope_query(db.session.query(Employee), Employee, user)
    return query.order_by(Employee.created_at.desc()).all()


def list_cluster_employees(*, user: User, cluster_id: str) -> list[Employee]:
    ensure_own_cluster(user, cluster_id)
    return (
        db.session.query(Employee)
        .filter(Employee.cluster_id == cluster_id)
        .order_by(Employee.created_at.desc())
        .all()
    )


def create_employee(payload: dict) -> Employee:
    patch = validate_payload(model=Employee, payload=payload, policy=EMPLOYEE_POLICY, partial=False)

    def _op():
        _require_cluster(patch["cluster_id"])
        employee = Employee(**patch)
        db.session.add(employee)
        db.session.commit()
        return employee

    employee = run_with_retry(_op)
    current_app.logger.info("Employee added: id=%s cluster=%s", employee.id, employee.cluster_id)
    return employee


def update_employee(employee_id: str, payload: dict) -> Employee:
    patch = validate_payload(model=Employee, payload=payload, policy=EMPLOYEE_POLICY, partial=True)

    def _op():
        employee = _get_employee(employee_id)
        if "cluster_id" in patch:
            _require_cluster(patch["cluster_id"])
        for k, v in patch.items():
            setattr(employee, k, v)
        db.session.commit()
        return employee

    return run_with_retry(_op)


def delete_employee(employee_id: str) -> None:
    def _op():
        db.session.delete(_get_employee(employee_id))
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Employee deleted: id=%s", employee_id)


def _status_counts(day) -> dict:
    rows = (
        db.session.query(Attendance.status, func.count(Attendance.id))
        .filter(Attendance.date == day)
        .group_by(Attendance.status)
        .all()
    )
    return {status: int(n) for status, n in rows}


def hr_stats(day=None) -> dict:
    """
    Head-count and attendance summary for day (default today).

    employeeChange counts employees created after the same date one month
    earlier. presentChange compares with the previous day and is None when
    that day has no attendance at all.
    """
    target = parse_optional_date(day) or today()
    total = db.session.query(func.count(Employee.id)).scalar() or 0

    month_ago = add_months(target, -1).replace(day=min(target.day, 28))
    cutoff = datetime.combine(month_ago, datetime.min.time())
    added = db.session.query(func.count(Employee.id)).filter(Employee.created_at > cutoff).scalar() or 0

    counts = _status_counts(target)
    present = counts.get("Present", 0)
    on_leave = counts.get("Leave", 0) + counts.get("Absent", 0)

    previous = _status_counts(target - timedelta(days=1))
    present_change = present - previous.get("Present", 0) if previous else None

    return {
        "date": to_iso_date(target),
        "totalEmployees": total,
        "employeeChange": added,
        "presentCount": present,
        "presentChange": present_change,
        "onLeaveCount": on_leave,
    }


def hr_employees(*, cluster_id: str | None = None, day=None) -> tuple[list[dict], str]:
    target = parse_optional_date(day) or today()
    query = db.session.query(Employee)
    if cluster_id:
        query = query.filter(Employee.cluster_id == cluster_id)
    employees = query.order_by(Employee.created_at.desc()).all()

    statuses = {
        employee_id: status
        for employee_id, status in db.session.query(Attendance.employee_id, Attendance.status)
        .filter(Attendance.date == target, Attendance.employee_id.isnot(None))
    }

    rows = []
    for employee in employees:
        data = employee.to_dict()
        data["attendance_status"] = statuses.get(employee.id, "N/A")
        data["manager_name"] = (employee.cluster.manager_name if employee.cluster else None) or "N/A"
        rows.append(data)
    return rows, to_iso_date(target)


def hr_clusters() -> list[dict]:
    return [c.summary() for c in db.session.query(Cluster).order_by(Cluster.name.asc()).all()]
