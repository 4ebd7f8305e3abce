# Overview: Flask API routes for environmental impact reporting; parses input and returns JSON responses.

# backend/greenverse/routes/impact.py
from flask import Blueprint, request

from ..services import reporting_service
from ..roles import Role
from ..decorators import require_auth, require_role


impact_bp = Blueprint("impact", __name__, url_prefix="/api/impact")


@impact_bp.get("/stats")
@require_auth
@require_role(Role.ADMIN)
def impact_stats():
    return reporting_service.impact_stats()


@impact_bp.get("/trend")
@require_auth
@require_role(Role.ADMIN)
def impact_trend():
    return {"trend": reporting_service.impact_trend()}


@impact_bp.get("/metrics")
@require_auth
@require_role(Role.ADMIN)
def list_metrics():
    return {"metrics": [m.to_dict() for m in reporting_service.list_impact_metrics()]}


@impact_bp.post("/metrics")
@require_auth
@require_role(Role.ADMIN)
def record_metric_route():
    data = request.get_json(silent=True) or {}
    metric = reporting_service.record_impact_metric(data)
    return {"message": "Impact metric recorded successfully", "metric": metric.to_dict()}, 201
