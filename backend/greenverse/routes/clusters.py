# Overview: Flask API routes for clusters operations; parses input and returns JSON responses.

# backend/greenverse/routes/clusters.py
"""
Cluster management routes.

Any authenticated user may read clusters (utilization refreshed on read).
Create, update and delete are admin-only; creation also provisions the
cluster's manager account.
"""
from flask import Blueprint, request

from ..services import cluster_service
from ..roles import Role
from ..decorators import require_auth, require_role


clusters_bp = Blueprint("clusters", __name__, url_prefix="/api/clusters")


@clusters_bp.get("")
@clusters_bp.get("/")
@require_auth
def list_clusters():
    clusters = cluster_service.list_clusters()
    return {"clusters": [cluster_service.serialize_cluster(c) for c in clusters]}


@clusters_bp.get("/<cluster_id>")
@require_auth
def get_cluster(cluster_id: str):
    cluster = cluster_service.get_cluster(cluster_id)
    return {"cluster": cluster_service.serialize_cluster(cluster)}


@clusters_bp.post("")
@clusters_bp.post("/")
@require_auth
@require_role(Role.ADMIN)
def create_cluster_route():
    """
    Create a cluster with its manager login.

    The response echoes the manager's email under credentials; the password
    is never returned.
    """
    data = request.get_json(silent=True) or {}
    cluster, manager = cluster_service.create_cluster(data)
    return {
        "message": "Cluster created successfully",
        "cluster": cluster_service.serialize_cluster(cluster),
        "credentials": {"email": manager.email},
    }, 201


@clusters_bp.put("/<cluster_id>")
@require_auth
@require_role(Role.ADMIN)
def update_cluster_route(cluster_id: str):
    data = request.get_json(silent=True) or {}
    cluster = cluster_service.update_cluster(cluster_id, data)
    return {"message": "Cluster updated successfully", "cluster": cluster_service.serialize_cluster(cluster)}


@clusters_bp.delete("/<cluster_id>")
@require_auth
@require_role(Role.ADMIN)
def delete_cluster_route(cluster_id: str):
    cluster_service.delete_cluster(cluster_id)
    return {"message": "Cluster deleted successfully"}
