# Overview: Flask API routes for production operations; parses input and returns JSON responses.

# backend/greenverse/routes/production.py
"""
Production routes.

- Cluster users log output for their own cluster and read their stats.
- /api/production/admin/* are admin dashboards across every cluster.
"""
from flask import Blueprint, request, g

from ..services import production_service
from ..roles import Role
from ..decorators import require_auth, require_role


production_bp = Blueprint("production", __name__, url_prefix="/api/production")


@production_bp.get("")
@production_bp.get("/")
@require_auth
def list_production():
    records = production_service.list_production(g.current_user)
    return {"production": [r.to_dict() for r in records]}


@production_bp.post("")
@production_bp.post("/")
@require_auth
@require_role(Role.CLUSTER)
def log_production_route():
    data = request.get_json(silent=True) or {}
    record = production_service.log_production(user=g.current_user, payload=data)
    return {"message": "Production logged successfully", "production": record.to_dict()}, 201


@production_bp.get("/stats")
@require_auth
@require_role(Role.CLUSTER)
def cluster_stats():
    return production_service.cluster_stats(g.current_user)


@production_bp.get("/admin/stats")
@require_auth
@require_role(Role.ADMIN)
def admin_stats():
    return production_service.admin_stats()


@production_bp.get("/admin/weekly")
@require_auth
@require_role(Role.ADMIN)
def admin_weekly():
    return {"weekly": production_service.weekly_breakdown()}


@production_bp.get("/admin/efficiency")
@require_auth
@require_role(Role.ADMIN)
def admin_efficiency():
    return {"efficiency": production_service.efficiency_series()}


@production_bp.get("/admin/clusters")
@require_auth
@require_role(Role.ADMIN)
def admin_clusters():
    return {"clusters": production_service.cluster_overview()}
