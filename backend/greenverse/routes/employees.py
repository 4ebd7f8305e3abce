# Overview: Flask API routes for employees and HR views; parses input and returns JSON responses.

# backend/greenverse/routes/employees.py
from flask import Blueprint, request, g

from ..services import employee_service
from ..roles import Role
from ..decorators import require_auth, require_role


employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.get("")
@employees_bp.get("/")
@require_auth
def list_employees():
    """Cluster users see their own cluster's employees; everyone else sees all."""
    employees = employee_service.list_employees(g.current_user)
    return {"employees": [e.to_dict() for e in employees]}


@employees_bp.get("/cluster/<cluster_id>")
@require_auth
@require_role(Role.ADMIN, Role.CLUSTER)
def list_cluster_employees(cluster_id: str):
    employees = employee_service.list_cluster_employees(user=g.current_user, cluster_id=cluster_id)
    return {"employees": [e.to_dict() for e in employees]}


@employees_bp.post("")
@employees_bp.post("/")
@require_auth
@require_role(Role.ADMIN)
def create_employee_route():
    data = request.get_json(silent=True) or {}
    employee = employee_service.create_employee(data)
    return {"message": "Employee added successfully", "employee": employee.to_dict()}, 201


@employees_bp.put("/<employee_id>")
@require_auth
@require_role(Role.ADMIN)
def update_employee_route(employee_id: str):
    data = request.get_json(silent=True) or {}
    employee = employee_service.update_employee(employee_id, data)
    return {"message": "Employee updated successfully", "employee": employee.to_dict()}


@employees_bp.delete("/<employee_id>")
@require_auth
@require_role(Role.ADMIN)
def delete_employee_route(employee_id: str):
    employee_service.delete_employee(employee_id)
    return {"message": "Employee deleted successfully"}


@employees_bp.get("/hr/stats")
@require_auth
@require_role(Role.ADMIN)
def hr_stats():
    return employee_service.hr_stats(request.args.get("date"))


@employees_bp.get("/hr/employees")
@require_auth
@require_role(Role.ADMIN)
def hr_employees():
    rows, day = employee_service.hr_employees(
        cluster_id=request.args.get("cluster_id") or None,
        day=request.args.get("date"),
    )
    return {"employees": rows, "date": day}


@employees_bp.get("/hr/clusters")
@require_auth
@require_role(Role.ADMIN)
def hr_clusters():
    return {"clusters": employee_service.hr_clusters()}
